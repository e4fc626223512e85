"""Contains the reconciliation pass between Source (Jira) and Target (GitHub) issues.

A pass fetches both trackers, pairs issues through the identity markers
embedded in Target bodies, and then handles one Source issue at a time. For a
linked pair the order is fixed: Target fields first, then the forward status
(Source to Target), and only when neither wrote anything, the reverse status
(Target to Source). Every Source and Target issue considered ends up as an
outcome in the pass report.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

import jinja2
import structlog

from tracker_sync_manager.configuration.reconcile import validate_sync_configuration
from tracker_sync_manager.github.abc import TargetTrackerBase
from tracker_sync_manager.jira.abc import SourceTrackerBase
from tracker_sync_manager.schemas.issues import SourceIssue, TargetIssue, TargetState
from tracker_sync_manager.schemas.sync_config import SyncConfig
from tracker_sync_manager.synchronize.exceptions import (
    AmbiguousIdentityError,
    IssueSyncError,
    NoValidTransitionError,
    SourceIssueNotFoundError,
)
from tracker_sync_manager.synchronize.identity import IdentityLinker, LinkStatus
from tracker_sync_manager.synchronize.metadata import IdentityMarker, inject_marker
from tracker_sync_manager.synchronize.models import OutcomeKind, SyncDecision
from tracker_sync_manager.synchronize.results import PassReport
from tracker_sync_manager.synchronize.status import (
    ForwardAction,
    ReverseAction,
    ReverseStatusIndex,
    decide_forward_state,
    decide_reverse_status,
    source_is_authoritative,
)
from tracker_sync_manager.synchronize.transforms import (
    build_identity_marker,
    build_source_fields_from_target,
    build_target_labels,
    render_target_body,
)
from tracker_sync_manager.synchronize.transitions import execute_status_transition
from tracker_sync_manager.synchronize.utils import compare_label_sets, compare_target_field
from tracker_sync_manager.utils.github import build_issue_url
from tracker_sync_manager.utils.templates import load_issue_body_template

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DesiredTargetIssue:
    """Target representation of a Source issue, as computed by the field transforms."""

    title: str
    body: str
    labels: frozenset[str]


@dataclass
class ReconciliationContext:
    """Everything a single pass needs while handling pairs."""

    source_adapter: SourceTrackerBase
    target_adapter: TargetTrackerBase
    sync_config: SyncConfig
    template: jinja2.Template
    reverse_index: ReverseStatusIndex
    report: PassReport
    source_base_url: str | None = None
    target_web_url: str = "https://github.com"
    dry_run: bool = False
    cancel_event: asyncio.Event | None = None

    @property
    def cancelled(self) -> bool:
        """Whether the pass has been asked to stop."""
        return self.cancel_event is not None and self.cancel_event.is_set()


def build_desired_target_issue(
    source_issue: SourceIssue,
    sync_config: SyncConfig,
    template: jinja2.Template,
    current_labels: set[str] | frozenset[str] = frozenset(),
    source_base_url: str | None = None,
    previous_category: str | None = None,
) -> DesiredTargetIssue:
    """Compute the Target title, body, and labels a Source issue should be mirrored as."""
    return DesiredTargetIssue(
        title=source_issue.title,
        body=render_target_body(source_issue, template, source_base_url=source_base_url),
        labels=frozenset(build_target_labels(source_issue, current_labels, sync_config, previous_category=previous_category)),
    )


async def decide_target_issue_sync_action(desired_issue: DesiredTargetIssue, target_issue: TargetIssue | None = None) -> SyncDecision:
    """Compare a desired Target representation and a Target issue, and decide whether to create, update, or no-op."""
    if target_issue is None:
        logger.info("Issue not found in Target tracker", issue_title=desired_issue.title)
        return SyncDecision.CREATE

    for field_name in ("title", "body"):
        field_decision = await compare_target_field(getattr(desired_issue, field_name), getattr(target_issue, field_name))
        if field_decision == SyncDecision.UPDATE:
            logger.info("Target issue needs to be updated", issue_number=target_issue.number, issue_field=field_name)
            return SyncDecision.UPDATE

    label_decision = await compare_label_sets(desired_issue.labels, target_issue.labels)
    if label_decision == SyncDecision.UPDATE:
        logger.info(
            "Target issue needs to be updated (labels differ)",
            issue_number=target_issue.number,
            issue_field="labels",
            current_value=sorted(target_issue.labels),
            new_value=sorted(desired_issue.labels),
        )
        return SyncDecision.UPDATE

    logger.debug("Target issue is up to date", issue_number=target_issue.number)
    return SyncDecision.NOOP


async def _run_isolated(
    context: ReconciliationContext,
    source_key: str | None,
    target_number: int | None,
    operation: Callable[[list[str]], Awaitable[None]],
) -> None:
    """Run the work for one pair, folding any failure into the report instead of aborting the pass."""
    actions: list[str] = []
    try:
        await operation(actions)
    except NoValidTransitionError as exc:
        logger.error("No valid transition for Source issue", source_key=exc.issue_key, desired_status=exc.desired_status, error=str(exc))
        context.report.record(OutcomeKind.NO_VALID_TRANSITION, source_key, target_number, actions, message=str(exc))
    except Exception as exc:
        error = IssueSyncError(source_key, target_number, exc)
        logger.error(
            "Failed to synchronize issue pair",
            source_key=source_key,
            issue_number=target_number,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        context.report.record(OutcomeKind.ERRORED, source_key, target_number, actions, message=str(error))


async def _create_target_issue(context: ReconciliationContext, source_issue: SourceIssue, target_state: TargetState, actions: list[str]) -> None:
    """Create the Target issue mirroring an unlinked Source issue, then set its state."""
    desired = build_desired_target_issue(source_issue, context.sync_config, context.template, source_base_url=context.source_base_url)
    labels = sorted(desired.labels)
    if context.dry_run:
        logger.info("Dry run, not creating Target issue", source_key=source_issue.key, labels=labels, target_state=target_state.value)
        actions.append("create_target_issue")
        if target_state != TargetState.OPEN:
            actions.append(f"set_target_state:{target_state.value}")
        context.report.record(OutcomeKind.CREATED, source_issue.key, None, actions)
        return

    created = await context.target_adapter.create_issue(title=desired.title, body=desired.body, labels=labels)
    actions.append("create_target_issue")
    logger.info("Created Target issue", source_key=source_issue.key, issue_number=created.number)
    if created.state != target_state:
        await context.target_adapter.set_state(created.number, target_state)
        actions.append(f"set_target_state:{target_state.value}")
        logger.info("Set Target issue state", source_key=source_issue.key, issue_number=created.number, target_state=target_state.value)
    context.report.record(OutcomeKind.CREATED, source_issue.key, created.number, actions)


async def _reconcile_reverse_status(
    context: ReconciliationContext,
    source_issue: SourceIssue,
    target_issue: TargetIssue,
    actions: list[str],
) -> bool:
    """Reflect the Target state back onto the Source status.

    Returns False when the reverse mapping is ambiguous, in which case the
    outcome has already been recorded.
    """
    decision = decide_reverse_status(target_issue.state, source_issue.status, context.reverse_index)
    if decision.action == ReverseAction.AMBIGUOUS:
        logger.info(
            "Skipping ambiguous reverse status mapping",
            source_key=source_issue.key,
            issue_number=target_issue.number,
            target_state=target_issue.state.value,
            candidates=list(decision.candidates),
        )
        candidates = ", ".join(decision.candidates) if decision.candidates else "none"
        context.report.record(
            OutcomeKind.AMBIGUOUS_REVERSE_MAPPING,
            source_issue.key,
            target_issue.number,
            actions,
            message=f"Target state '{target_issue.state.value}' maps back to {len(decision.candidates)} Source statuses ({candidates})",
        )
        return False
    if decision.action == ReverseAction.NOOP or decision.desired_status is None:
        return True

    await execute_status_transition(context.source_adapter, source_issue.key, decision.desired_status, dry_run=context.dry_run)
    actions.append(f"transition_source:{decision.desired_status}")

    # Record the new status in the marker so the next pass sees the pair as reconciled
    marker = build_identity_marker(source_issue, synced_status=decision.desired_status)
    refreshed_body = inject_marker(target_issue.body, marker)
    if refreshed_body != target_issue.body:
        if not context.dry_run:
            await context.target_adapter.update_issue(target_issue.number, body=refreshed_body)
        actions.append("refresh_identity_marker")
    return True


async def _reconcile_linked_pair(
    context: ReconciliationContext,
    source_issue: SourceIssue,
    target_issue: TargetIssue,
    marker: IdentityMarker,
    actions: list[str],
) -> None:
    """Bring a linked pair into agreement."""
    forward = decide_forward_state(source_issue, context.sync_config.statuses)
    if forward.action == ForwardAction.UNMAPPED:
        logger.warning("Source status is not in the status mapping table", source_key=source_issue.key, status=source_issue.status)
        context.report.record(OutcomeKind.UNMAPPED_STATUS, source_issue.key, target_issue.number, message=f"Status '{source_issue.status}' is not mapped")
        return
    if forward.action == ForwardAction.INELIGIBLE or forward.target_state is None:
        logger.debug("Source issue is not sync-eligible", source_key=source_issue.key, status=source_issue.status)
        context.report.record(OutcomeKind.INELIGIBLE, source_issue.key, target_issue.number)
        return

    direction = context.sync_config.sync.direction
    if not direction.reverse_enabled:
        source_wins = True
    elif not direction.forward_enabled:
        source_wins = False
    else:
        source_wins = source_is_authoritative(source_issue, marker)

    if direction.forward_enabled:
        # (a) title, labels, and body
        desired = build_desired_target_issue(
            source_issue,
            context.sync_config,
            context.template,
            current_labels=target_issue.labels,
            source_base_url=context.source_base_url,
            previous_category=marker.category,
        )
        if await decide_target_issue_sync_action(desired, target_issue) == SyncDecision.UPDATE:
            if context.dry_run:
                logger.info("Dry run, not updating Target issue", source_key=source_issue.key, issue_number=target_issue.number)
            else:
                await context.target_adapter.update_issue(
                    target_issue.number,
                    title=desired.title,
                    body=desired.body,
                    labels=sorted(desired.labels),
                )
                logger.info("Updated Target issue", source_key=source_issue.key, issue_number=target_issue.number)
            actions.append("update_target_fields")

        # (b) forward status
        if source_wins and target_issue.state != forward.target_state:
            if context.dry_run:
                logger.info("Dry run, not setting Target issue state", source_key=source_issue.key, issue_number=target_issue.number)
            else:
                await context.target_adapter.set_state(target_issue.number, forward.target_state)
                logger.info(
                    "Set Target issue state",
                    source_key=source_issue.key,
                    issue_number=target_issue.number,
                    target_state=forward.target_state.value,
                )
            actions.append(f"set_target_state:{forward.target_state.value}")

    # (c) reverse status, only when nothing was written to the Target issue above
    if not actions and direction.reverse_enabled and not source_wins and target_issue.state != forward.target_state:
        if not await _reconcile_reverse_status(context, source_issue, target_issue, actions):
            return

    context.report.record(OutcomeKind.UPDATED if actions else OutcomeKind.UNCHANGED, source_issue.key, target_issue.number, actions)


async def sync_source_issue(context: ReconciliationContext, source_issue: SourceIssue, linker: IdentityLinker) -> None:
    """Reconcile one Source issue with the Target issue it is linked to, creating that issue when needed."""
    link = linker.link(source_issue.key)
    try:
        link.raise_if_ambiguous()
    except AmbiguousIdentityError as exc:
        logger.warning("Skipping Source issue linked from multiple Target issues", source_key=source_issue.key, issue_numbers=exc.target_numbers)
        context.report.record(OutcomeKind.AMBIGUOUS_IDENTITY, source_issue.key, message=str(exc))
        return

    if link.status == LinkStatus.LINKED and link.target_issue is not None and link.marker is not None:
        target_issue, marker = link.target_issue, link.marker

        async def reconcile(actions: list[str]) -> None:
            await _reconcile_linked_pair(context, source_issue, target_issue, marker, actions)

        await _run_isolated(context, source_issue.key, target_issue.number, reconcile)
        return

    forward = decide_forward_state(source_issue, context.sync_config.statuses)
    if forward.action == ForwardAction.UNMAPPED:
        logger.warning("Source status is not in the status mapping table", source_key=source_issue.key, status=source_issue.status)
        context.report.record(OutcomeKind.UNMAPPED_STATUS, source_issue.key, message=f"Status '{source_issue.status}' is not mapped")
        return
    if forward.action == ForwardAction.INELIGIBLE or forward.target_state is None:
        logger.debug("Source issue is not sync-eligible", source_key=source_issue.key, status=source_issue.status)
        context.report.record(OutcomeKind.INELIGIBLE, source_issue.key)
        return
    if not context.sync_config.sync.direction.forward_enabled:
        context.report.record(OutcomeKind.UNCHANGED, source_issue.key, message="Target issue creation is disabled by the sync direction")
        return

    target_state = forward.target_state

    async def create(actions: list[str]) -> None:
        await _create_target_issue(context, source_issue, target_state, actions)

    await _run_isolated(context, source_issue.key, None, create)


async def sync_orphaned_target_issue(context: ReconciliationContext, target_issue: TargetIssue, marker: IdentityMarker) -> None:
    """Account for a linked Target issue whose Source issue was not part of this pass.

    When the Target state no longer matches the Source status recorded in the
    marker, the Target side changed since the last pass, so the Source issue is
    fetched on its own and the pair is reconciled.
    """
    recorded = context.sync_config.statuses.get(marker.synced_status) if marker.synced_status else None
    if not context.sync_config.sync.direction.reverse_enabled or recorded is None or recorded.target_state == target_issue.state:
        context.report.record(OutcomeKind.ORPHANED, marker.source_key, target_issue.number, message="Source issue is not part of this pass")
        return

    async def reconcile(actions: list[str]) -> None:
        try:
            source_issue = await context.source_adapter.get_issue(marker.source_key)
        except SourceIssueNotFoundError as exc:
            logger.warning("Linked Source issue no longer exists", source_key=marker.source_key, issue_number=target_issue.number)
            context.report.record(OutcomeKind.ORPHANED, marker.source_key, target_issue.number, message=str(exc))
            return
        await _reconcile_linked_pair(context, source_issue, target_issue, marker, actions)

    await _run_isolated(context, marker.source_key, target_issue.number, reconcile)


async def _create_source_issue(context: ReconciliationContext, target_issue: TargetIssue, actions: list[str]) -> None:
    """Create a Source issue for an untracked Target issue and link the two through the identity marker."""
    creation = context.sync_config.target_to_source_creation
    target_url = build_issue_url(context.target_adapter.repository, target_issue.number, context.target_web_url)
    fields = build_source_fields_from_target(target_issue, creation, context.sync_config.fields, target_url=target_url)
    if context.dry_run:
        logger.info("Dry run, not creating Source issue", issue_number=target_issue.number, project_key=creation.project_key)
        actions.append("create_source_issue")
        context.report.record(OutcomeKind.CREATED, None, target_issue.number, actions)
        return

    source_key = await context.source_adapter.create_issue(fields)
    actions.append("create_source_issue")
    logger.info("Created Source issue from Target issue", source_key=source_key, issue_number=target_issue.number)

    if creation.default_status:
        try:
            await execute_status_transition(context.source_adapter, source_key, creation.default_status)
            actions.append(f"transition_source:{creation.default_status}")
        except NoValidTransitionError as exc:
            logger.warning("Leaving created Source issue in its initial status", source_key=source_key, error=str(exc))

    source_issue = await context.source_adapter.get_issue(source_key)
    marker = build_identity_marker(source_issue)
    await context.target_adapter.update_issue(target_issue.number, body=inject_marker(target_issue.body, marker))
    actions.append("embed_identity_marker")
    context.report.record(OutcomeKind.CREATED, source_key, target_issue.number, actions)


async def account_for_unlinked_target_issues(context: ReconciliationContext, linker: IdentityLinker, source_keys: list[str]) -> None:
    """Record an outcome for every Target issue not consumed by a Source issue in this pass."""
    for target_issue, error in linker.malformed:
        if context.cancelled:
            return
        context.report.record(OutcomeKind.MALFORMED_METADATA, None, target_issue.number, message=error)

    for target_issue, marker in linker.orphaned(source_keys):
        if context.cancelled:
            return
        if len(linker.linked.get(marker.source_key, [])) > 1:
            context.report.record(
                OutcomeKind.AMBIGUOUS_IDENTITY,
                marker.source_key,
                target_issue.number,
                message="Another Target issue carries the same Source key",
            )
            continue
        await sync_orphaned_target_issue(context, target_issue, marker)

    creation = context.sync_config.target_to_source_creation
    creation_enabled = creation.enabled and context.sync_config.sync.direction.reverse_enabled
    for target_issue in sorted(linker.untracked, key=lambda issue: issue.number):
        if context.cancelled:
            return
        if not creation_enabled:
            context.report.record(OutcomeKind.UNTRACKED, None, target_issue.number)
            continue
        untracked_issue = target_issue

        async def create(actions: list[str]) -> None:
            await _create_source_issue(context, untracked_issue, actions)

        await _run_isolated(context, None, target_issue.number, create)


async def run_reconciliation_pass(
    source_adapter: SourceTrackerBase,
    target_adapter: TargetTrackerBase,
    sync_config: SyncConfig,
    template: jinja2.Template | None = None,
    source_base_url: str | None = None,
    target_web_url: str = "https://github.com",
    dry_run: bool = False,
    cancel_event: asyncio.Event | None = None,
) -> PassReport:
    """Run one reconciliation pass between the Source and Target trackers.

    Raises:
        SyncConfigurationError: If the configuration is invalid. Nothing is fetched or written in that case.
    """
    validate_sync_configuration(sync_config)
    if template is None:
        template = load_issue_body_template(sync_config.issue_template)

    report = PassReport(dry_run=dry_run)
    start_time = time.time()
    logger.info("Fetching Source and Target issues", jql=sync_config.sync.jql, start_time=start_time)
    source_issues, target_issues = await asyncio.gather(
        source_adapter.list_issues(sync_config.sync.jql),
        target_adapter.list_issues(),
    )
    logger.info(
        "Fetched Source and Target issues",
        duration=round(time.time() - start_time, 2),
        source_issue_count=len(source_issues),
        target_issue_count=len(target_issues),
    )

    context = ReconciliationContext(
        source_adapter=source_adapter,
        target_adapter=target_adapter,
        sync_config=sync_config,
        template=template,
        reverse_index=ReverseStatusIndex.from_status_mappings(sync_config.statuses),
        report=report,
        source_base_url=source_base_url,
        target_web_url=target_web_url,
        dry_run=dry_run,
        cancel_event=cancel_event,
    )
    linker = IdentityLinker.from_target_issues(target_issues)

    ordered_source_issues = sorted(source_issues, key=lambda issue: issue.key)
    for source_issue in ordered_source_issues:
        if context.cancelled:
            break
        await sync_source_issue(context, source_issue, linker)
    if not context.cancelled:
        await account_for_unlinked_target_issues(context, linker, [issue.key for issue in ordered_source_issues])

    report.cancelled = context.cancelled
    report.duration = time.time() - start_time
    if report.cancelled:
        logger.warning("Reconciliation pass cancelled", **report.counters())
    logger.info("Reconciliation pass complete", dry_run=dry_run, duration=round(report.duration, 2), **report.counters())
    return report
