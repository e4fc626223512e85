"""Recovers the identity relation between Source issues and Target issues.

Neither tracker stores a foreign key to the other. The relation is rebuilt on
every pass by scanning Target issue bodies for an embedded identity marker.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

import structlog

from tracker_sync_manager.schemas.issues import TargetIssue
from tracker_sync_manager.synchronize.exceptions import AmbiguousIdentityError, MalformedMetadataError
from tracker_sync_manager.synchronize.metadata import IdentityMarker, parse_marker

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class LinkStatus(str, Enum):
    """Result of looking up the Target issue linked to a Source key."""

    LINKED = "linked"
    UNLINKED = "unlinked"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class IdentityLink:
    """The Target side of a Source key, as recovered from embedded markers."""

    source_key: str
    status: LinkStatus
    target_issue: TargetIssue | None = None
    marker: IdentityMarker | None = None
    candidates: tuple[TargetIssue, ...] = ()

    def raise_if_ambiguous(self) -> None:
        """Raise AmbiguousIdentityError when more than one Target issue carries this Source key."""
        if self.status == LinkStatus.AMBIGUOUS:
            raise AmbiguousIdentityError(self.source_key, [issue.number for issue in self.candidates])


@dataclass
class IdentityLinker:
    """Index of Target issues by the Source key embedded in their bodies."""

    linked: dict[str, list[tuple[TargetIssue, IdentityMarker]]] = field(default_factory=dict)
    untracked: list[TargetIssue] = field(default_factory=list)
    malformed: list[tuple[TargetIssue, str]] = field(default_factory=list)

    @classmethod
    def from_target_issues(cls, target_issues: Iterable[TargetIssue]) -> "IdentityLinker":
        """Parse every Target body once and build the reverse index."""
        linked: dict[str, list[tuple[TargetIssue, IdentityMarker]]] = defaultdict(list)
        untracked: list[TargetIssue] = []
        malformed: list[tuple[TargetIssue, str]] = []
        for target_issue in target_issues:
            try:
                marker = parse_marker(target_issue.body)
            except MalformedMetadataError as exc:
                logger.warning("Target issue has a malformed identity marker", issue_number=target_issue.number, error=str(exc))
                malformed.append((target_issue, str(exc)))
                continue
            if marker is None:
                untracked.append(target_issue)
                continue
            linked[marker.source_key].append((target_issue, marker))
        for source_key, entries in linked.items():
            if len(entries) > 1:
                logger.warning(
                    "Multiple Target issues carry the same Source key",
                    source_key=source_key,
                    issue_numbers=[issue.number for issue, _ in entries],
                )
        return cls(linked=dict(linked), untracked=untracked, malformed=malformed)

    def link(self, source_key: str) -> IdentityLink:
        """Return the unique Target issue linked to a Source key, if any."""
        entries = self.linked.get(source_key, [])
        if not entries:
            return IdentityLink(source_key=source_key, status=LinkStatus.UNLINKED)
        if len(entries) > 1:
            return IdentityLink(
                source_key=source_key,
                status=LinkStatus.AMBIGUOUS,
                candidates=tuple(issue for issue, _ in entries),
            )
        target_issue, marker = entries[0]
        return IdentityLink(
            source_key=source_key,
            status=LinkStatus.LINKED,
            target_issue=target_issue,
            marker=marker,
            candidates=(target_issue,),
        )

    def orphaned(self, source_keys: Iterable[str]) -> list[tuple[TargetIssue, IdentityMarker]]:
        """Return linked Target issues whose Source key is not among the given keys."""
        known = set(source_keys)
        orphans = [entry for key, entries in self.linked.items() if key not in known for entry in entries]
        return sorted(orphans, key=lambda entry: entry[0].number)
