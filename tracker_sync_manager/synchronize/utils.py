"""Contains utility functions for synchronization actions."""

from typing import Any, Iterable, Sequence

from tracker_sync_manager.synchronize.models import SyncDecision
from tracker_sync_manager.synchronize.types import HasName, LabelType


async def value_is_noney(value: Any) -> bool:
    """Check if a value is None, an empty list, an empty string, or an empty dict."""
    if value is None:
        return True
    elif isinstance(value, (list, set, frozenset)) and not value:
        return True
    elif isinstance(value, str) and value == "":
        return True
    elif isinstance(value, dict) and not value:
        return True
    return False


async def compare_target_field(desired_value: Any, target_value: Any) -> SyncDecision:
    """Compare a desired field value and a Target issue field value, and decide whether to update or no-op.

    Unlike label sets, a scalar field that is empty on both sides is considered in sync.
    """
    desired_value_is_noney = await value_is_noney(desired_value)
    target_value_is_noney = await value_is_noney(target_value)
    if desired_value_is_noney and target_value_is_noney:
        return SyncDecision.NOOP
    elif desired_value == target_value:
        return SyncDecision.NOOP
    return SyncDecision.UPDATE


def extract_label_names(labels: Iterable[LabelType]) -> set[str]:
    """Extract label names from a list of GitHub label objects, strings, or dicts."""
    names: set[str] = set()
    for label in labels:
        if isinstance(label, str):
            names.add(label)
        elif isinstance(label, dict) and "name" in label:
            names.add(label["name"])
        elif isinstance(label, HasName):
            names.add(label.name)
    return names


async def compare_label_sets(desired_labels: Iterable[str] | None, target_labels: Sequence[LabelType] | Iterable[str] | None) -> SyncDecision:
    """Compare two sets of labels (desired and Target), return NOOP if they match, UPDATE otherwise.

    GitHub matches label names without regard to case, so neither does this comparison.
    """
    desired_set = {label.casefold() for label in desired_labels} if desired_labels else set()
    target_set = {label.casefold() for label in extract_label_names(target_labels)} if target_labels else set()
    if desired_set == target_set:
        return SyncDecision.NOOP
    return SyncDecision.UPDATE
