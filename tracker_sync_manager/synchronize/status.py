"""Maps Source statuses onto Target states, and back again when that is safe.

The forward direction is a plain lookup in the status mapping table. Many
Source statuses may share a Target state, so the reverse direction is only
usable when a Target state maps back to exactly one Source status. Any other
group size is treated as ambiguous and never drives a transition.
"""

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

import structlog

from tracker_sync_manager.schemas.issues import SourceIssue, TargetState
from tracker_sync_manager.schemas.sync_config import StatusMapping
from tracker_sync_manager.synchronize.metadata import IdentityMarker

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class ForwardAction(str, Enum):
    """Outcome of looking up a Source status in the mapping table."""

    SYNC = "sync"
    INELIGIBLE = "ineligible"
    UNMAPPED = "unmapped"


class ReverseAction(str, Enum):
    """Outcome of looking up a Target state in the reverse status index."""

    TRANSITION = "transition"
    NOOP = "noop"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class ForwardDecision:
    """Desired Target state for a Source issue, or the reason it is excluded from sync."""

    action: ForwardAction
    target_state: TargetState | None = None


@dataclass(frozen=True)
class ReverseDecision:
    """Desired Source status for a Target state, or why none can be chosen."""

    action: ReverseAction
    target_state: TargetState
    desired_status: str | None = None
    candidates: tuple[str, ...] = ()


class ReverseStatusIndex:
    """Source statuses grouped by the Target state they map to, in mapping table order."""

    def __init__(self, groups: Mapping[TargetState, tuple[str, ...]]) -> None:
        """Initialize the index with precomputed groups."""
        self.groups: dict[TargetState, tuple[str, ...]] = {state: tuple(groups.get(state, ())) for state in TargetState}

    @classmethod
    def from_status_mappings(cls, status_mappings: Mapping[str, StatusMapping]) -> "ReverseStatusIndex":
        """Invert the status mapping table into a multi-map."""
        groups: dict[TargetState, list[str]] = defaultdict(list)
        for status, mapping in status_mappings.items():
            groups[mapping.target_state].append(status)
        index = cls({state: tuple(statuses) for state, statuses in groups.items()})
        for state in TargetState:
            if index.is_ambiguous(state):
                logger.debug("Reverse status mapping is not usable", target_state=state.value, candidates=list(index.candidates(state)))
        return index

    def candidates(self, target_state: TargetState) -> tuple[str, ...]:
        """Return every Source status mapped to a Target state."""
        return self.groups[target_state]

    def is_ambiguous(self, target_state: TargetState) -> bool:
        """Whether the Target state cannot be reversed to a single Source status."""
        return len(self.groups[target_state]) != 1

    def resolve(self, target_state: TargetState) -> str | None:
        """Return the single Source status for a Target state, or None when the group is not exactly one status."""
        group = self.groups[target_state]
        if len(group) != 1:
            return None
        return group[0]


def decide_forward_state(source_issue: SourceIssue, status_mappings: Mapping[str, StatusMapping]) -> ForwardDecision:
    """Look up the Target state a Source issue should be in."""
    mapping = status_mappings.get(source_issue.status)
    if mapping is None:
        return ForwardDecision(action=ForwardAction.UNMAPPED)
    if not mapping.sync_eligible or not source_issue.sync_eligible:
        return ForwardDecision(action=ForwardAction.INELIGIBLE)
    return ForwardDecision(action=ForwardAction.SYNC, target_state=mapping.target_state)


def decide_reverse_status(target_state: TargetState, current_status: str, reverse_index: ReverseStatusIndex) -> ReverseDecision:
    """Decide which Source status a Target state should be reflected as."""
    candidates = reverse_index.candidates(target_state)
    desired_status = reverse_index.resolve(target_state)
    if desired_status is None:
        return ReverseDecision(action=ReverseAction.AMBIGUOUS, target_state=target_state, candidates=candidates)
    if desired_status == current_status:
        return ReverseDecision(action=ReverseAction.NOOP, target_state=target_state, desired_status=desired_status, candidates=candidates)
    return ReverseDecision(action=ReverseAction.TRANSITION, target_state=target_state, desired_status=desired_status, candidates=candidates)


def source_is_authoritative(source_issue: SourceIssue, marker: IdentityMarker | None) -> bool:
    """Whether the Source side changed since the pair was last reconciled.

    The marker records the Source status the pair was last reconciled at. A
    missing record, or a Source status that differs from it, means the Source
    side moved and its state wins. Otherwise any disagreement originated on
    the Target side.
    """
    if marker is None or marker.synced_status is None:
        return True
    return marker.synced_status != source_issue.status
