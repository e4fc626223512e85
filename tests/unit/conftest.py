"""Fixtures for unit tests."""

from typing import Generator

import pytest
import structlog

from tracker_sync_manager.schemas.issues import SourceIssue, TargetState
from tracker_sync_manager.schemas.sync_config import StatusMapping, SyncConfig


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def sync_config() -> SyncConfig:
    """A sync configuration with three open statuses, one closed status, and one status that is not published."""
    return SyncConfig(
        statuses={
            "Draft": StatusMapping(target_state=TargetState.OPEN, sync_eligible=False),
            "Backlog": StatusMapping(target_state=TargetState.OPEN),
            "In Progress": StatusMapping(target_state=TargetState.OPEN),
            "In Review": StatusMapping(target_state=TargetState.OPEN),
            "Done": StatusMapping(target_state=TargetState.CLOSED),
        }
    )


@pytest.fixture
def source_issue() -> SourceIssue:
    """A typical Source issue."""
    return SourceIssue(
        key="PROJ-1",
        title="Add export button",
        rich_body={"type": "doc", "version": 1, "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Export to CSV."}]}]},
        status="Backlog",
        category="Story",
        priority="High",
    )
