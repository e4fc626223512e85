"""Utility modules for shared functionality."""

from .constants import (
    DEFAULT_CATEGORIES,
    DEFAULT_ISSUE_BODY_TEMPLATE,
    DEFAULT_PRIORITY_LABELS,
    METADATA_COMMENT_END,
    METADATA_COMMENT_START,
)
from .retry import retry_on_rate_limit

__all__ = [
    "METADATA_COMMENT_START",
    "METADATA_COMMENT_END",
    "DEFAULT_PRIORITY_LABELS",
    "DEFAULT_CATEGORIES",
    "DEFAULT_ISSUE_BODY_TEMPLATE",
    "retry_on_rate_limit",
]
