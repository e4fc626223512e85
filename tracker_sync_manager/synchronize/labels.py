"""Contains synchronization logic for the GitHub labels managed by the sync.

Category and priority labels are created ahead of the first pass so that the
repository spells them the way the sync emits them. GitHub matches label names
without regard to case, so an existing label that differs only in case is
renamed rather than duplicated.
"""

from dataclasses import dataclass, field

import structlog

from tracker_sync_manager.github.adapter import GitHubKitAdapter
from tracker_sync_manager.schemas.sync_config import SyncConfig
from tracker_sync_manager.synchronize.models import SyncDecision
from tracker_sync_manager.synchronize.transforms import category_label
from tracker_sync_manager.synchronize.types import HasName
from tracker_sync_manager.utils.constants import DEFAULT_CATEGORY_LABEL_COLOR, DEFAULT_PRIORITY_LABEL_COLOR

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ManagedLabel:
    """A label the sync emits on Target issues."""

    name: str
    color: str
    description: str


@dataclass
class LabelSetupResult:
    """Labels created, renamed, and left alone by a label setup run."""

    created: list[str] = field(default_factory=list)
    renamed: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    dry_run: bool = False


def build_managed_labels(sync_config: SyncConfig) -> list[ManagedLabel]:
    """List the category and priority labels of a sync configuration, without case-insensitive duplicates."""
    labels: dict[str, ManagedLabel] = {}
    for category in sync_config.categories:
        name = category_label(category)
        if name:
            labels.setdefault(name.casefold(), ManagedLabel(name=name, color=DEFAULT_CATEGORY_LABEL_COLOR, description=f"Jira category: {category}"))
    for priority, name in sync_config.priorities.items():
        labels.setdefault(name.casefold(), ManagedLabel(name=name, color=DEFAULT_PRIORITY_LABEL_COLOR, description=f"Jira priority: {priority}"))
    return list(labels.values())


async def decide_label_sync_action(desired_label: ManagedLabel, github_label: HasName | None = None) -> SyncDecision:
    """Compare a managed label and a GitHub label, and decide whether to create, update, or no-op.

    Key is the case-insensitive label name.
    """
    if github_label is None:
        logger.info("Label not found in GitHub", label_name=desired_label.name)
        return SyncDecision.CREATE

    if github_label.name != desired_label.name:
        logger.info("Label needs to be renamed", current_label_name=github_label.name, new_label_name=desired_label.name)
        return SyncDecision.UPDATE

    logger.debug("Label is up to date", label_name=desired_label.name)
    return SyncDecision.NOOP


async def setup_managed_labels(github_adapter: GitHubKitAdapter, sync_config: SyncConfig, dry_run: bool = False) -> LabelSetupResult:
    """Create the managed labels missing from the repository and rename those that differ only in case."""
    result = LabelSetupResult(dry_run=dry_run)
    existing_labels = {label.name.casefold(): label for label in await github_adapter.list_labels()}

    for desired_label in build_managed_labels(sync_config):
        github_label = existing_labels.get(desired_label.name.casefold())
        decision = await decide_label_sync_action(desired_label, github_label)
        if decision == SyncDecision.CREATE:
            if not dry_run:
                await github_adapter.create_label(name=desired_label.name, color=desired_label.color, description=desired_label.description)
                logger.info("Created label", label_name=desired_label.name)
            result.created.append(desired_label.name)
        elif decision == SyncDecision.UPDATE and github_label is not None:
            if not dry_run:
                await github_adapter.update_label(name=github_label.name, new_name=desired_label.name)
                logger.info("Renamed label", current_label_name=github_label.name, new_label_name=desired_label.name)
            result.renamed.append(desired_label.name)
        else:
            result.unchanged.append(desired_label.name)
    return result
