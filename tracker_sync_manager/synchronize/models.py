"""Enumerations describing synchronization decisions and per-pair outcomes."""

from enum import Enum


class SyncDecision(str, Enum):
    """Action to take for a Target issue given the desired representation."""

    CREATE = "create"
    UPDATE = "update"
    NOOP = "noop"


class OutcomeKind(str, Enum):
    """Kind of outcome recorded for a Source issue, Target issue, or pair in a pass report."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    INELIGIBLE = "ineligible"
    UNMAPPED_STATUS = "unmapped_status"
    AMBIGUOUS_IDENTITY = "ambiguous_identity"
    AMBIGUOUS_REVERSE_MAPPING = "ambiguous_reverse_mapping"
    MALFORMED_METADATA = "malformed_metadata"
    UNTRACKED = "untracked"
    ORPHANED = "orphaned"
    NO_VALID_TRANSITION = "no_valid_transition"
    ERRORED = "errored"

    @property
    def counter(self) -> str:
        """Name of the pass report counter this outcome increments."""
        if self is OutcomeKind.CREATED:
            return "created"
        if self is OutcomeKind.UPDATED:
            return "updated"
        if self is OutcomeKind.AMBIGUOUS_REVERSE_MAPPING:
            return "ambiguous_skipped"
        if self in (OutcomeKind.NO_VALID_TRANSITION, OutcomeKind.ERRORED):
            return "errored"
        return "skipped"

    @property
    def is_warning(self) -> bool:
        """Whether the outcome should be surfaced to an operator even though it is not an error."""
        return self in (OutcomeKind.AMBIGUOUS_IDENTITY, OutcomeKind.MALFORMED_METADATA)
