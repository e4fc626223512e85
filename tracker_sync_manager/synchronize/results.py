"""Contains results of a reconciliation pass."""

from dataclasses import dataclass, field
from typing import Any

from tracker_sync_manager.synchronize.models import OutcomeKind


@dataclass(frozen=True)
class PairOutcome:
    """Outcome recorded for one Source issue, Target issue, or linked pair."""

    kind: OutcomeKind
    source_key: str | None = None
    target_number: int | None = None
    actions: tuple[str, ...] = ()
    message: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Serialize the outcome for logging."""
        outcome: dict[str, Any] = {"kind": self.kind.value}
        if self.source_key is not None:
            outcome["source_key"] = self.source_key
        if self.target_number is not None:
            outcome["target_number"] = self.target_number
        if self.actions:
            outcome["actions"] = list(self.actions)
        if self.message:
            outcome["message"] = self.message
        return outcome


@dataclass
class PassReport:
    """Counters and per-pair outcomes of a reconciliation pass.

    The report is only ever added to. Counters are derived from the outcome
    kind, so every outcome lands in exactly one counter.
    """

    created: int = 0
    updated: int = 0
    skipped: int = 0
    ambiguous_skipped: int = 0
    errored: int = 0
    outcomes: list[PairOutcome] = field(default_factory=list)
    dry_run: bool = False
    cancelled: bool = False
    duration: float | None = None

    def record(
        self,
        kind: OutcomeKind,
        source_key: str | None = None,
        target_number: int | None = None,
        actions: list[str] | tuple[str, ...] = (),
        message: str | None = None,
    ) -> PairOutcome:
        """Record an outcome and increment its counter."""
        outcome = PairOutcome(kind=kind, source_key=source_key, target_number=target_number, actions=tuple(actions), message=message)
        self.outcomes.append(outcome)
        setattr(self, kind.counter, getattr(self, kind.counter) + 1)
        return outcome

    @property
    def has_errors(self) -> bool:
        """Whether any pair failed during the pass."""
        return self.errored > 0

    @property
    def warnings(self) -> list[PairOutcome]:
        """Outcomes an operator should look at even though they are not errors."""
        return [outcome for outcome in self.outcomes if outcome.kind.is_warning]

    def outcomes_of(self, kind: OutcomeKind) -> list[PairOutcome]:
        """Return every outcome of a given kind."""
        return [outcome for outcome in self.outcomes if outcome.kind == kind]

    def counters(self) -> dict[str, int]:
        """Return the pass counters."""
        return {
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "ambiguous_skipped": self.ambiguous_skipped,
            "errored": self.errored,
        }

    def as_dict(self) -> dict[str, Any]:
        """Serialize the report for logging or CI output."""
        return {
            **self.counters(),
            "dry_run": self.dry_run,
            "cancelled": self.cancelled,
            "duration": round(self.duration, 2) if self.duration is not None else None,
            "outcomes": [outcome.as_dict() for outcome in self.outcomes],
        }
