"""Executes Source status changes through the discover-then-execute transition protocol."""

import structlog

from tracker_sync_manager.jira.abc import SourceTrackerBase
from tracker_sync_manager.schemas.issues import Transition
from tracker_sync_manager.synchronize.exceptions import NoValidTransitionError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def find_transition_to_status(source_adapter: SourceTrackerBase, issue_key: str, desired_status: str) -> Transition:
    """Find the transition currently available to an issue that leads to the desired status.

    Available transitions depend on the issue's workflow state, so they are
    fetched for every call and never cached across issues.

    Raises:
        NoValidTransitionError: If no available transition leads to the desired status.
    """
    transitions = await source_adapter.list_available_transitions(issue_key)
    for transition in transitions:
        if transition.destination_status == desired_status:
            return transition
    raise NoValidTransitionError(issue_key, desired_status, [transition.destination_status for transition in transitions])


async def execute_status_transition(
    source_adapter: SourceTrackerBase,
    issue_key: str,
    desired_status: str,
    dry_run: bool = False,
) -> Transition:
    """Move a Source issue to the desired status by executing the matching transition by its identifier."""
    transition = await find_transition_to_status(source_adapter, issue_key, desired_status)
    if dry_run:
        logger.info("Dry run, not transitioning Source issue", source_key=issue_key, desired_status=desired_status, transition_id=transition.id)
        return transition
    logger.info("Transitioning Source issue", source_key=issue_key, desired_status=desired_status, transition_id=transition.id)
    await source_adapter.apply_transition(issue_key, transition.id)
    return transition
