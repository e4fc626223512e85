"""Unit tests for recovering the identity relation from Target issues."""

import pytest

from tracker_sync_manager.schemas.issues import TargetIssue
from tracker_sync_manager.synchronize.exceptions import AmbiguousIdentityError
from tracker_sync_manager.synchronize.identity import IdentityLinker, LinkStatus
from tracker_sync_manager.synchronize.metadata import IdentityMarker, inject_marker


def linked_issue(number: int, source_key: str) -> TargetIssue:
    """Create a Target issue carrying a marker for the given Source key."""
    return TargetIssue(number=number, title=f"Issue {number}", body=inject_marker("Text", IdentityMarker(source_key=source_key, synced_status="Backlog")))


@pytest.fixture
def linker() -> IdentityLinker:
    """A linker over linked, duplicated, untracked, and malformed Target issues."""
    return IdentityLinker.from_target_issues(
        [
            linked_issue(1, "PROJ-1"),
            linked_issue(2, "PROJ-2"),
            linked_issue(3, "PROJ-2"),
            TargetIssue(number=4, title="Untracked", body="Written by hand"),
            TargetIssue(number=5, title="Broken", body="<!-- tracker-sync-metadata\n{\n-->"),
            linked_issue(6, "PROJ-9"),
        ]
    )


def test_link_unique(linker: IdentityLinker) -> None:
    """Test that a Source key carried by one Target issue is linked to it."""
    link = linker.link("PROJ-1")
    assert link.status == LinkStatus.LINKED
    assert link.target_issue is not None and link.target_issue.number == 1
    assert link.marker is not None and link.marker.synced_status == "Backlog"
    link.raise_if_ambiguous()


def test_link_ambiguous(linker: IdentityLinker) -> None:
    """Test that a Source key carried by two Target issues is ambiguous and never linked."""
    link = linker.link("PROJ-2")
    assert link.status == LinkStatus.AMBIGUOUS
    assert link.target_issue is None
    assert [issue.number for issue in link.candidates] == [2, 3]
    with pytest.raises(AmbiguousIdentityError, match="#2, #3"):
        link.raise_if_ambiguous()


def test_link_unlinked(linker: IdentityLinker) -> None:
    """Test that a Source key carried by no Target issue is unlinked."""
    assert linker.link("PROJ-404").status == LinkStatus.UNLINKED


def test_untracked_and_malformed_issues(linker: IdentityLinker) -> None:
    """Test that issues without a marker and issues with a broken marker are kept apart."""
    assert [issue.number for issue in linker.untracked] == [4]
    assert [issue.number for issue, _ in linker.malformed] == [5]


def test_orphaned(linker: IdentityLinker) -> None:
    """Test that linked Target issues whose Source key was not seen are orphaned, in issue number order."""
    orphans = linker.orphaned(["PROJ-1"])
    assert [(issue.number, marker.source_key) for issue, marker in orphans] == [(2, "PROJ-2"), (3, "PROJ-2"), (6, "PROJ-9")]
