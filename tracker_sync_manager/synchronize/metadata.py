"""Embeds and recovers the identity marker stored in Target issue bodies.

The marker is a hidden HTML comment holding a small JSON document::

    <!-- tracker-sync-metadata
    {
      "source_key": "PROJ-12",
      "parent_key": "PROJ-3",
      "synced_status": "In Progress",
      "category": "Story"
    }
    -->

It is the only record of which Source issue a Target issue mirrors, and of the
Source category whose type label the Target issue carries. Rendering is
deterministic so that re-embedding the same facts never changes the body.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tracker_sync_manager.synchronize.exceptions import MalformedMetadataError
from tracker_sync_manager.utils.constants import METADATA_COMMENT_END, METADATA_COMMENT_START, METADATA_MARKER_NAME

MARKER_START_PATTERN = re.compile(r"<!--\s*" + re.escape(METADATA_MARKER_NAME))
MARKER_PATTERN = re.compile(MARKER_START_PATTERN.pattern + r"[\s\S]*?" + re.escape(METADATA_COMMENT_END))


class IdentityMarker(BaseModel):
    """Identity facts embedded in a Target issue body."""

    model_config = ConfigDict(frozen=True)

    source_key: str = Field(min_length=1)
    parent_key: str | None = None
    synced_status: str | None = None
    category: str | None = None


def render_marker(marker: IdentityMarker) -> str:
    """Serialize a marker into its hidden comment form."""
    payload = marker.model_dump_json(indent=2, exclude_none=True)
    return f"{METADATA_COMMENT_START}\n{payload}\n{METADATA_COMMENT_END}"


def parse_marker(body: str | None) -> IdentityMarker | None:
    """Parse the marker out of a Target issue body.

    Returns None when the body carries no marker. The last marker in the body
    wins, matching how ``inject_marker`` appends it.

    Raises:
        MalformedMetadataError: If a marker is present but cannot be parsed.
    """
    if not body:
        return None
    starts = list(MARKER_START_PATTERN.finditer(body))
    if not starts:
        return None
    payload_start = starts[-1].end()
    end_index = body.find(METADATA_COMMENT_END, payload_start)
    if end_index == -1:
        raise MalformedMetadataError("Identity marker is not terminated")
    payload = body[payload_start:end_index].strip()
    try:
        return IdentityMarker.model_validate_json(payload)
    except ValidationError as exc:
        raise MalformedMetadataError(f"Identity marker could not be parsed: {exc.error_count()} error(s)") from exc


def strip_marker(body: str | None) -> str:
    """Remove every identity marker from a body, along with trailing whitespace."""
    if not body:
        return ""
    return MARKER_PATTERN.sub("", body).rstrip()


def inject_marker(body: str | None, marker: IdentityMarker) -> str:
    """Replace any marker in a body with the given one, appending it at the end."""
    content = strip_marker(body)
    rendered = render_marker(marker)
    if not content:
        return rendered
    return f"{content}\n\n{rendered}"
