"""Contains unit tests for the reconciliation pass between Source and Target issues."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from tests.unit.fakes import FakeSourceTracker, FakeTargetTracker, LabelSpellingTargetTracker
from tracker_sync_manager.configuration.exceptions import SyncConfigurationError
from tracker_sync_manager.github.abc import TargetTrackerBase
from tracker_sync_manager.jira.abc import SourceTrackerBase
from tracker_sync_manager.schemas.issues import SourceIssue, TargetIssue, TargetState
from tracker_sync_manager.schemas.sync_config import SyncConfig, SyncDirection, SyncOptions, TargetToSourceCreationConfig
from tracker_sync_manager.synchronize.exceptions import TransientNetworkError
from tracker_sync_manager.synchronize.issues import decide_target_issue_sync_action, run_reconciliation_pass
from tracker_sync_manager.synchronize.metadata import IdentityMarker, inject_marker, parse_marker
from tracker_sync_manager.synchronize.models import OutcomeKind, SyncDecision
from tracker_sync_manager.synchronize.results import PassReport
from tracker_sync_manager.synchronize.transforms import render_target_body
from tracker_sync_manager.utils.templates import load_issue_body_template


def make_source(issues: list[SourceIssue], sync_config: SyncConfig, **kwargs: object) -> FakeSourceTracker:
    """Build a fake Source tracker whose workflow can reach every configured status."""
    return FakeSourceTracker(issues, statuses=list(sync_config.statuses), **kwargs)  # type: ignore[arg-type]


def close_target_issue(target: FakeTargetTracker, number: int, state: TargetState = TargetState.CLOSED) -> None:
    """Change a Target issue's state behind the engine's back, as a user would."""
    target.issues[number] = target.issues[number].model_copy(update={"state": state})


def change_source_issue(source: FakeSourceTracker, key: str, **changes: object) -> None:
    """Change a Source issue behind the engine's back, as a user would."""
    source.issues[key] = source.issues[key].model_copy(update=changes)


async def run_pass(source: SourceTrackerBase, target: TargetTrackerBase, sync_config: SyncConfig, **kwargs: object) -> PassReport:
    """Run a pass with a Jira base URL so bodies carry Source links."""
    return await run_reconciliation_pass(source, target, sync_config, source_base_url="https://example.atlassian.net", **kwargs)  # type: ignore[arg-type]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "desired, target, expected",
    [
        pytest.param(
            SimpleNamespace(title="A", body="B", labels=frozenset({"bug"})),
            None,
            SyncDecision.CREATE,
            id="create if target_issue is None",
        ),
        pytest.param(
            SimpleNamespace(title="A", body="B", labels=frozenset({"bug"})),
            SimpleNamespace(number=1, title="A", body="B", labels=frozenset({"bug"})),
            SyncDecision.NOOP,
            id="noop if all fields match",
        ),
        pytest.param(
            SimpleNamespace(title="A", body="B", labels=frozenset({"bug"})),
            SimpleNamespace(number=1, title="OLD", body="B", labels=frozenset({"bug"})),
            SyncDecision.UPDATE,
            id="update if title differs",
        ),
        pytest.param(
            SimpleNamespace(title="A", body="B", labels=frozenset({"bug"})),
            SimpleNamespace(number=1, title="A", body="DIFFERENT", labels=frozenset({"bug"})),
            SyncDecision.UPDATE,
            id="update if body differs",
        ),
        pytest.param(
            SimpleNamespace(title="A", body="B", labels=frozenset({"bug"})),
            SimpleNamespace(number=1, title="A", body="B", labels=frozenset({"story"})),
            SyncDecision.UPDATE,
            id="update if labels differ",
        ),
    ],
)
async def test_decide_target_issue_sync_action(desired: SimpleNamespace, target: SimpleNamespace | None, expected: SyncDecision) -> None:
    """Test decide_target_issue_sync_action for create, update, and noop cases."""
    result = await decide_target_issue_sync_action(desired, target)  # type: ignore[arg-type]
    assert result == expected


@pytest.mark.asyncio
async def test_unlinked_source_issue_creates_target_issue(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that a new Source issue creates a Target issue with labels and an identity marker."""
    source = make_source([source_issue], sync_config)
    target = FakeTargetTracker()

    report = await run_pass(source, target, sync_config)

    assert report.created == 1
    assert report.errored == 0
    created = target.issues[1]
    assert created.title == "Add export button"
    assert created.labels == frozenset({"story", "high"})
    assert created.state == TargetState.OPEN
    assert "Export to CSV." in created.body
    assert "https://example.atlassian.net/browse/PROJ-1" in created.body
    marker = parse_marker(created.body)
    assert marker is not None
    assert marker.source_key == "PROJ-1"
    assert marker.synced_status == "Backlog"
    assert source.writes == []


@pytest.mark.asyncio
async def test_created_target_issue_is_closed_when_status_maps_to_closed(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that a Target issue created for a finished Source issue is closed after creation."""
    source = make_source([source_issue.model_copy(update={"status": "Done"})], sync_config)
    target = FakeTargetTracker()

    report = await run_pass(source, target, sync_config)

    assert report.created == 1
    assert target.issues[1].state == TargetState.CLOSED
    assert report.outcomes[0].actions == ("create_target_issue", "set_target_state:closed")


@pytest.mark.asyncio
async def test_second_pass_makes_no_writes(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that running a pass twice with no external changes makes no writes the second time."""
    source = make_source([source_issue, source_issue.model_copy(update={"key": "PROJ-2", "status": "Done"})], sync_config)
    target = FakeTargetTracker()
    await run_pass(source, target, sync_config)
    target_writes, source_writes = list(target.writes), list(source.writes)

    report = await run_pass(source, target, sync_config)

    assert target.writes == target_writes
    assert source.writes == source_writes
    assert report.created == 0
    assert report.updated == 0
    assert [outcome.kind for outcome in report.outcomes] == [OutcomeKind.UNCHANGED, OutcomeKind.UNCHANGED]


@pytest.mark.asyncio
async def test_status_change_within_open_group_does_not_write_state(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that moving between two statuses mapped to open does not touch the Target state."""
    source = make_source([source_issue], sync_config)
    target = FakeTargetTracker()
    await run_pass(source, target, sync_config)
    change_source_issue(source, "PROJ-1", status="In Review", title="Add CSV export button")
    target.writes.clear()

    report = await run_pass(source, target, sync_config)

    assert report.updated == 1
    assert report.outcomes[0].actions == ("update_target_fields",)
    assert target.issues[1].title == "Add CSV export button"
    assert target.issues[1].state == TargetState.OPEN
    assert all("state" not in write[2] for write in target.writes)
    marker = parse_marker(target.issues[1].body)
    assert marker is not None and marker.synced_status == "In Review"


@pytest.mark.asyncio
async def test_source_status_change_to_closed_status_closes_target_issue(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that a Source issue moving to a closed status closes its Target issue without echoing back."""
    source = make_source([source_issue], sync_config)
    target = FakeTargetTracker()
    await run_pass(source, target, sync_config)
    change_source_issue(source, "PROJ-1", status="Done")

    report = await run_pass(source, target, sync_config)

    assert report.updated == 1
    assert target.issues[1].state == TargetState.CLOSED
    assert report.outcomes[0].actions == ("update_target_fields", "set_target_state:closed")
    assert source.writes == []


@pytest.mark.asyncio
async def test_closing_target_issue_transitions_source_issue(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that closing a Target issue moves its Source issue to the single closed status."""
    source = make_source([source_issue], sync_config)
    target = FakeTargetTracker()
    await run_pass(source, target, sync_config)
    close_target_issue(target, 1)

    report = await run_pass(source, target, sync_config)

    assert report.updated == 1
    assert source.issues["PROJ-1"].status == "Done"
    assert source.writes == [("transition", "PROJ-1", "Done")]
    assert report.outcomes[0].actions == ("transition_source:Done", "refresh_identity_marker")
    marker = parse_marker(target.issues[1].body)
    assert marker is not None and marker.synced_status == "Done"

    target_writes = list(target.writes)
    third_report = await run_pass(source, target, sync_config)
    assert target.writes == target_writes
    assert source.writes == [("transition", "PROJ-1", "Done")]
    assert third_report.outcomes[0].kind == OutcomeKind.UNCHANGED


@pytest.mark.asyncio
async def test_reopening_is_skipped_as_ambiguous_while_closing_succeeds(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that reopening is skipped when three statuses map to open, while closing still transitions."""
    source = make_source([source_issue, source_issue.model_copy(update={"key": "PROJ-2", "status": "Done"})], sync_config)
    target = FakeTargetTracker()
    await run_pass(source, target, sync_config)
    close_target_issue(target, 1)
    close_target_issue(target, 2, TargetState.OPEN)

    report = await run_pass(source, target, sync_config)

    assert report.updated == 1
    assert report.ambiguous_skipped == 1
    assert report.errored == 0
    assert source.writes == [("transition", "PROJ-1", "Done")]
    assert source.issues["PROJ-2"].status == "Done"
    ambiguous = report.outcomes_of(OutcomeKind.AMBIGUOUS_REVERSE_MAPPING)
    assert [outcome.source_key for outcome in ambiguous] == ["PROJ-2"]
    assert "Backlog, In Progress, In Review" in (ambiguous[0].message or "")


@pytest.mark.asyncio
async def test_field_update_suppresses_reverse_status_in_same_pass(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that a pair with a Target field write this pass does not also get a reverse transition."""
    source = make_source([source_issue], sync_config)
    target = FakeTargetTracker()
    await run_pass(source, target, sync_config)
    close_target_issue(target, 1)
    change_source_issue(source, "PROJ-1", title="Renamed")

    report = await run_pass(source, target, sync_config)

    assert report.outcomes[0].actions == ("update_target_fields",)
    assert source.writes == []

    report = await run_pass(source, target, sync_config)
    assert report.outcomes[0].actions == ("transition_source:Done", "refresh_identity_marker")


@pytest.mark.asyncio
async def test_category_change_replaces_type_label(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that a category change leaves exactly one category label and keeps labels the sync does not manage."""
    source = make_source([source_issue], sync_config)
    target = FakeTargetTracker()
    await run_pass(source, target, sync_config)
    target.issues[1] = target.issues[1].model_copy(update={"labels": target.issues[1].labels | {"customer"}})
    change_source_issue(source, "PROJ-1", category="Bug", priority="Low")

    await run_pass(source, target, sync_config)

    assert target.issues[1].labels == frozenset({"bug", "low", "customer"})


@pytest.mark.asyncio
async def test_category_change_from_unconfigured_category_removes_old_type_label(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that the label of a category outside the configured categories is removed when the category changes."""
    source = make_source([source_issue.model_copy(update={"category": "Sub-task"})], sync_config)
    target = FakeTargetTracker()
    await run_pass(source, target, sync_config)
    assert target.issues[1].labels == frozenset({"sub-task", "high"})
    marker = parse_marker(target.issues[1].body)
    assert marker is not None and marker.category == "Sub-task"
    change_source_issue(source, "PROJ-1", category="Bug")

    report = await run_pass(source, target, sync_config)

    assert report.updated == 1
    assert target.issues[1].labels == frozenset({"bug", "high"})
    marker = parse_marker(target.issues[1].body)
    assert marker is not None and marker.category == "Bug"


@pytest.mark.asyncio
async def test_repository_label_spelling_does_not_cause_rewrites(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that labels spelled differently by the repository are in sync, so closing the Target issue still transitions the Source issue."""
    source = make_source([source_issue], sync_config)
    target = LabelSpellingTargetTracker(repository_labels=["Story", "High", "Customer"])
    await run_pass(source, target, sync_config)
    assert target.issues[1].labels == frozenset({"Story", "High"})
    target_writes = list(target.writes)

    report = await run_pass(source, target, sync_config)

    assert target.writes == target_writes
    assert report.outcomes[0].kind == OutcomeKind.UNCHANGED

    close_target_issue(target, 1)
    report = await run_pass(source, target, sync_config)

    assert report.outcomes[0].actions == ("transition_source:Done", "refresh_identity_marker")
    assert source.issues["PROJ-1"].status == "Done"
    assert target.issues[1].labels == frozenset({"Story", "High"})

    target_writes = list(target.writes)
    report = await run_pass(source, target, sync_config)
    assert target.writes == target_writes
    assert report.outcomes[0].kind == OutcomeKind.UNCHANGED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "changes, expected_kind",
    [
        pytest.param({"status": "Draft"}, OutcomeKind.INELIGIBLE, id="status not sync-eligible"),
        pytest.param({"sync_eligible": False}, OutcomeKind.INELIGIBLE, id="snapshot not sync-eligible"),
        pytest.param({"status": "Won't Do"}, OutcomeKind.UNMAPPED_STATUS, id="status not mapped"),
    ],
)
async def test_excluded_source_issue_is_skipped(
    sync_config: SyncConfig, source_issue: SourceIssue, changes: dict[str, object], expected_kind: OutcomeKind
) -> None:
    """Test that ineligible or unmapped Source issues never create Target issues."""
    source = make_source([source_issue.model_copy(update=changes)], sync_config)
    target = FakeTargetTracker()

    report = await run_pass(source, target, sync_config)

    assert target.issues == {}
    assert report.skipped == 1
    assert report.outcomes[0].kind == expected_kind


@pytest.mark.asyncio
async def test_ambiguous_identity_excludes_pair_from_writes(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that two Target issues carrying the same Source key are reported and left alone."""
    body = inject_marker("Copy", IdentityMarker(source_key="PROJ-1", synced_status="Backlog"))
    target = FakeTargetTracker(
        [
            TargetIssue(number=1, title="Old", body=body),
            TargetIssue(number=2, title="Old copy", body=body),
        ]
    )
    source = make_source([source_issue], sync_config)

    report = await run_pass(source, target, sync_config)

    assert target.writes == []
    assert report.skipped == 1
    assert report.outcomes[0].kind == OutcomeKind.AMBIGUOUS_IDENTITY
    assert report.outcomes[0].message == "Source issue PROJ-1 is linked from multiple Target issues: #1, #2"
    assert report.warnings == [report.outcomes[0]]


@pytest.mark.asyncio
async def test_unlinked_target_issues_are_accounted_for(sync_config: SyncConfig) -> None:
    """Test that untracked, malformed, and orphaned Target issues each get an outcome without writes."""
    target = FakeTargetTracker(
        [
            TargetIssue(number=1, title="Hand written", body="No marker here"),
            TargetIssue(number=2, title="Damaged", body="Text\n\n<!-- tracker-sync-metadata\n{not json\n-->"),
            TargetIssue(number=3, title="Old", body=inject_marker("Old", IdentityMarker(source_key="PROJ-9", synced_status="Backlog"))),
        ]
    )
    source = make_source([], sync_config)

    report = await run_pass(source, target, sync_config)

    assert target.writes == []
    assert report.skipped == 3
    kinds = {outcome.target_number: outcome.kind for outcome in report.outcomes}
    assert kinds == {1: OutcomeKind.UNTRACKED, 2: OutcomeKind.MALFORMED_METADATA, 3: OutcomeKind.ORPHANED}


@pytest.mark.asyncio
async def test_orphaned_target_issue_closed_since_last_pass_is_reconciled(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that a closed Target issue whose Source issue fell outside the query still transitions the Source issue."""
    body = render_target_body(source_issue, load_issue_body_template(None), source_base_url="https://example.atlassian.net")
    target = FakeTargetTracker([TargetIssue(number=7, title="Add export button", body=body, labels=frozenset({"story", "high"}), state=TargetState.CLOSED)])
    source = make_source([source_issue], sync_config)
    source.list_issues = AsyncMock(return_value=[])  # type: ignore[method-assign]

    report = await run_pass(source, target, sync_config)

    assert source.issues["PROJ-1"].status == "Done"
    assert report.updated == 1
    assert report.outcomes[0].target_number == 7


@pytest.mark.asyncio
async def test_orphaned_target_issue_with_deleted_source_issue(sync_config: SyncConfig) -> None:
    """Test that a changed Target issue whose Source issue no longer exists is reported as orphaned."""
    body = inject_marker("Gone", IdentityMarker(source_key="PROJ-404", synced_status="Backlog"))
    target = FakeTargetTracker([TargetIssue(number=1, title="Gone", body=body, state=TargetState.CLOSED)])
    source = make_source([], sync_config)

    report = await run_pass(source, target, sync_config)

    assert report.errored == 0
    assert report.outcomes[0].kind == OutcomeKind.ORPHANED
    assert "PROJ-404" in (report.outcomes[0].message or "")


@pytest.mark.asyncio
async def test_missing_transition_is_reported_as_error(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that a closed status unreachable from the current workflow state is an error for that pair only."""
    source = make_source(
        [source_issue, source_issue.model_copy(update={"key": "PROJ-2"})],
        sync_config,
        workflow={"Backlog": ["In Progress"]},
    )
    target = FakeTargetTracker()
    await run_pass(source, target, sync_config)
    close_target_issue(target, 1)

    report = await run_pass(source, target, sync_config)

    assert report.errored == 1
    assert report.has_errors is True
    failure = report.outcomes_of(OutcomeKind.NO_VALID_TRANSITION)[0]
    assert failure.source_key == "PROJ-1"
    assert "available: In Progress" in (failure.message or "")
    assert source.writes == []
    assert report.outcomes_of(OutcomeKind.UNCHANGED)[0].source_key == "PROJ-2"


class FailingTargetTracker(FakeTargetTracker):
    """Target tracker that fails to create issues with a given title."""

    def __init__(self, failing_title: str, error: Exception) -> None:
        """Initialize the fake with the title to fail on and the error to raise."""
        super().__init__()
        self.failing_title = failing_title
        self.error = error

    async def create_issue(self, title: str, body: str, labels: list[str] | None = None) -> TargetIssue:
        """Fail for the configured title, otherwise create the issue."""
        if title == self.failing_title:
            raise self.error
        return await super().create_issue(title, body, labels)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        pytest.param(RuntimeError("boom"), id="unexpected error"),
        pytest.param(TransientNetworkError("create_issue", 6, "503 Service Unavailable"), id="retries exhausted"),
    ],
)
async def test_failing_pair_does_not_abort_pass(sync_config: SyncConfig, source_issue: SourceIssue, error: Exception) -> None:
    """Test that one pair failing is recorded as an error and the next pair is still processed."""
    source = make_source([source_issue, source_issue.model_copy(update={"key": "PROJ-2", "title": "Other"})], sync_config)
    target = FailingTargetTracker("Add export button", error)

    report = await run_pass(source, target, sync_config)

    assert report.errored == 1
    assert report.created == 1
    errored = report.outcomes_of(OutcomeKind.ERRORED)[0]
    assert errored.source_key == "PROJ-1"
    assert (errored.message or "").startswith("Failed to synchronize PROJ-1")
    assert target.issues[1].title == "Other"


@pytest.mark.asyncio
async def test_dry_run_makes_no_writes(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that a dry run reports intended actions without writing to either tracker."""
    source = make_source([source_issue, source_issue.model_copy(update={"key": "PROJ-2"})], sync_config)
    target = FakeTargetTracker()
    await run_pass(source, target, sync_config, dry_run=False)
    close_target_issue(target, 1)
    source.issues["PROJ-3"] = source_issue.model_copy(update={"key": "PROJ-3", "status": "Done"})
    target_writes = list(target.writes)

    report = await run_pass(source, target, sync_config, dry_run=True)

    assert report.dry_run is True
    assert target.writes == target_writes
    assert source.writes == []
    assert report.created == 1
    assert report.updated == 1
    assert report.outcomes_of(OutcomeKind.CREATED)[0].actions == ("create_target_issue", "set_target_state:closed")
    assert report.outcomes_of(OutcomeKind.UPDATED)[0].actions == ("transition_source:Done", "refresh_identity_marker")


class CancellingTargetTracker(FakeTargetTracker):
    """Target tracker that requests cancellation after its first write."""

    def __init__(self, cancel_event: asyncio.Event) -> None:
        """Initialize the fake with the event to set."""
        super().__init__()
        self.cancel_event = cancel_event

    async def create_issue(self, title: str, body: str, labels: list[str] | None = None) -> TargetIssue:
        """Create the issue, then request cancellation."""
        issue = await super().create_issue(title, body, labels)
        self.cancel_event.set()
        return issue


@pytest.mark.asyncio
async def test_cancellation_stops_between_pairs(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that a cancelled pass finishes the pair in progress and then stops."""
    cancel_event = asyncio.Event()
    source = make_source([source_issue, source_issue.model_copy(update={"key": "PROJ-2"})], sync_config)
    target = CancellingTargetTracker(cancel_event)

    report = await run_pass(source, target, sync_config, cancel_event=cancel_event)

    assert report.cancelled is True
    assert report.created == 1
    assert list(target.issues) == [1]


@pytest.mark.asyncio
async def test_source_to_target_direction_restores_target_state(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that one-way sync reopens a Target issue closed by hand instead of transitioning the Source issue."""
    config = sync_config.model_copy(update={"sync": SyncOptions(direction=SyncDirection.SOURCE_TO_TARGET)})
    source = make_source([source_issue], config)
    target = FakeTargetTracker()
    await run_pass(source, target, config)
    close_target_issue(target, 1)

    report = await run_pass(source, target, config)

    assert target.issues[1].state == TargetState.OPEN
    assert source.writes == []
    assert report.outcomes[0].actions == ("set_target_state:open",)


@pytest.mark.asyncio
async def test_target_to_source_direction_never_creates_target_issues(sync_config: SyncConfig, source_issue: SourceIssue) -> None:
    """Test that reverse-only sync leaves unlinked Source issues alone."""
    config = sync_config.model_copy(update={"sync": SyncOptions(direction=SyncDirection.TARGET_TO_SOURCE)})
    source = make_source([source_issue], config)
    target = FakeTargetTracker()

    report = await run_pass(source, target, config)

    assert target.writes == []
    assert report.outcomes[0].kind == OutcomeKind.UNCHANGED


@pytest.mark.asyncio
async def test_untracked_target_issue_creates_source_issue(sync_config: SyncConfig) -> None:
    """Test that an untracked Target issue creates a linked Source issue when creation is enabled."""
    config = sync_config.model_copy(
        update={
            "target_to_source_creation": TargetToSourceCreationConfig(
                enabled=True,
                project_key="PROJ",
                label_to_category={"bug": "Bug"},
                default_category="Idea",
                default_status="In Progress",
            )
        }
    )
    target = FakeTargetTracker([TargetIssue(number=5, title="Crash on start", body="It crashes.", labels=frozenset({"bug"}))])
    source = make_source([], config)

    report = await run_pass(source, target, config)

    assert report.created == 1
    assert source.writes == [("create", "PROJ-101"), ("transition", "PROJ-101", "In Progress")]
    fields = source.created_fields[0]
    assert fields["project"] == {"key": "PROJ"}
    assert fields["issuetype"] == {"name": "Bug"}
    assert fields["summary"] == "Crash on start"
    marker = parse_marker(target.issues[5].body)
    assert marker == IdentityMarker(source_key="PROJ-101", synced_status="In Progress", category="Bug")
    assert target.issues[5].body.startswith("It crashes.")


@pytest.mark.asyncio
async def test_invalid_configuration_fails_before_any_fetch(source_issue: SourceIssue) -> None:
    """Test that an empty status table aborts the pass before either tracker is contacted."""
    source = AsyncMock(spec=SourceTrackerBase)
    target = AsyncMock(spec=TargetTrackerBase)

    with pytest.raises(SyncConfigurationError):
        await run_reconciliation_pass(source, target, SyncConfig())

    source.list_issues.assert_not_awaited()
    target.list_issues.assert_not_awaited()
