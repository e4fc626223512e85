"""Pydantic schema for the sync configuration YAML file."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from tracker_sync_manager.schemas.issues import TargetState
from tracker_sync_manager.utils.constants import DEFAULT_CATEGORIES, DEFAULT_PRIORITY_LABELS, DEFAULT_SOURCE_JQL


class SyncDirection(str, Enum):
    """Which directions a reconciliation pass propagates changes in."""

    SOURCE_TO_TARGET = "source-to-target"
    TARGET_TO_SOURCE = "target-to-source"
    BIDIRECTIONAL = "bidirectional"

    @property
    def forward_enabled(self) -> bool:
        """Whether Source changes are written to the Target tracker."""
        return self in (SyncDirection.SOURCE_TO_TARGET, SyncDirection.BIDIRECTIONAL)

    @property
    def reverse_enabled(self) -> bool:
        """Whether Target state changes are written back to the Source tracker."""
        return self in (SyncDirection.TARGET_TO_SOURCE, SyncDirection.BIDIRECTIONAL)


class StatusMapping(BaseModel):
    """Descriptor for a single Source status."""

    model_config = ConfigDict(frozen=True)

    target_state: TargetState
    sync_eligible: bool = True


class SyncOptions(BaseModel):
    """Pass-level options."""

    model_config = ConfigDict(frozen=True)

    direction: SyncDirection = SyncDirection.BIDIRECTIONAL
    jql: str = DEFAULT_SOURCE_JQL


class FieldMappingConfig(BaseModel):
    """Names of the Source fields the engine reads category, priority, and parent linkage from."""

    model_config = ConfigDict(frozen=True)

    category_field: str = "issuetype"
    priority_field: str = "priority"
    parent_field: str = "parent"


class TargetToSourceCreationConfig(BaseModel):
    """Settings for creating Source issues from Target issues that carry no identity marker."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    project_key: str | None = None
    issue_type: str = "Idea"
    label_to_category: dict[str, str] = Field(default_factory=dict)
    default_category: str | None = None
    default_status: str | None = None


class SyncConfig(BaseModel):
    """Pydantic model for the full sync configuration."""

    model_config = ConfigDict(frozen=True)

    sync: SyncOptions = Field(default_factory=SyncOptions)
    fields: FieldMappingConfig = Field(default_factory=FieldMappingConfig)
    categories: list[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    priorities: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_PRIORITY_LABELS))
    eligible_categories: list[str] | None = None
    statuses: dict[str, StatusMapping] = Field(default_factory=dict)
    issue_template: str | None = None
    target_to_source_creation: TargetToSourceCreationConfig = Field(default_factory=TargetToSourceCreationConfig)

    def managed_labels(self) -> set[str]:
        """Labels owned by the sync, which may be removed from Target issues when they no longer apply."""
        managed = {category.lower() for category in self.categories}
        managed.update(self.priorities.values())
        return managed
