"""Field transforms deriving the Target representation of a Source issue.

Every function in this module is pure: no I/O and no state retained between
calls. The category field is the only source of the type label; nothing else
in the code base may emit one.
"""

import re
from typing import Any

import jinja2
import structlog

from tracker_sync_manager.schemas.issues import SourceIssue, TargetIssue
from tracker_sync_manager.schemas.sync_config import FieldMappingConfig, SyncConfig, TargetToSourceCreationConfig
from tracker_sync_manager.synchronize.metadata import IdentityMarker, inject_marker, render_marker, strip_marker
from tracker_sync_manager.utils.constants import DEFAULT_MAX_ISSUE_BODY_LENGTH
from tracker_sync_manager.utils.truncation import truncate_string_at_end

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

CONTAINER_NODE_TYPES = frozenset({"doc", "blockquote", "panel", "expand", "nestedExpand", "listItem"})
INLINE_CONTAINER_NODE_TYPES = frozenset({"paragraph", "heading", "codeBlock"})
LIST_NODE_TYPES = frozenset({"bulletList", "orderedList"})
PARAGRAPH_SEPARATOR = re.compile(r"\n\s*\n")


def category_label(category: str | None) -> str | None:
    """Project a Source category onto its Target type label."""
    if not category or not category.strip():
        return None
    return category.strip().lower()


def priority_label(priority: str | None, priority_labels: dict[str, str]) -> str | None:
    """Look up the Target label for a Source priority; unmapped priorities produce no label."""
    if not priority:
        return None
    return priority_labels.get(priority)


def build_target_labels(
    source_issue: SourceIssue,
    current_labels: set[str] | frozenset[str],
    sync_config: SyncConfig,
    previous_category: str | None = None,
) -> set[str]:
    """Compute the full label set a Target issue should carry.

    Labels the sync does not manage are preserved. Managed labels that no longer
    apply are removed, so exactly one category-derived label remains. The
    previous category, as recorded in the identity marker, is managed even when
    it is not a configured category.

    GitHub matches label names without regard to case, so managed labels are
    compared case-insensitively and a label already on the issue keeps its
    spelling.
    """
    derived = {label for label in (category_label(source_issue.category), priority_label(source_issue.priority, sync_config.priorities)) if label}
    previous = category_label(previous_category)
    managed = {label.casefold() for label in sync_config.managed_labels() | derived}
    if previous:
        managed.add(previous.casefold())
    existing_spelling = {label.casefold(): label for label in current_labels}
    kept = {label for label in current_labels if label.casefold() not in managed}
    return kept | {existing_spelling.get(label.casefold(), label) for label in derived}


def _children(node: dict[str, Any]) -> list[Any]:
    content = node.get("content")
    return content if isinstance(content, list) else []


def _join_blocks(nodes: list[Any]) -> str:
    rendered = (_render_node(child) for child in nodes)
    return "\n".join(text for text in rendered if text.strip())


def _render_list(node: dict[str, Any]) -> str:
    ordered = node.get("type") == "orderedList"
    attrs = node.get("attrs") or {}
    start = attrs.get("order", 1) if isinstance(attrs.get("order"), int) else 1
    lines: list[str] = []
    for index, item in enumerate(_children(node)):
        text = _render_node(item)
        if not text.strip():
            continue
        bullet = f"{start + index}. " if ordered else "- "
        item_lines = text.split("\n")
        lines.append(bullet + item_lines[0])
        lines.extend(f"  {line}" if line else line for line in item_lines[1:])
    return "\n".join(lines)


def _render_inline_attribute(node: dict[str, Any], *names: str) -> str:
    attrs = node.get("attrs") or {}
    for name in names:
        value = attrs.get(name)
        if value:
            return str(value)
    return ""


def _render_node(node: Any) -> str:
    if not isinstance(node, dict):
        return ""
    node_type = node.get("type")
    if node_type == "text":
        text = node.get("text")
        return text if isinstance(text, str) else ""
    if node_type == "hardBreak":
        return "\n"
    if node_type in INLINE_CONTAINER_NODE_TYPES:
        return "".join(_render_node(child) for child in _children(node))
    if node_type in LIST_NODE_TYPES:
        return _render_list(node)
    if node_type in CONTAINER_NODE_TYPES:
        return _join_blocks(_children(node))
    if node_type == "mention":
        return _render_inline_attribute(node, "text", "id")
    if node_type == "emoji":
        return _render_inline_attribute(node, "text", "shortName")
    if node_type == "inlineCard":
        return _render_inline_attribute(node, "url")
    if node_type == "rule":
        return "---"
    logger.debug("Skipping unsupported rich text node", node_type=node_type)
    return ""


def rich_text_to_plain_text(document: dict[str, Any] | str | None) -> str:
    """Flatten a rich text (Atlassian Document Format) document into newline-joined plain text.

    Unknown node types are skipped rather than rendered, so structured content
    never leaks into the Target body as an object representation.
    """
    if document is None:
        return ""
    if isinstance(document, str):
        return document.replace("\r\n", "\n").strip()
    if not isinstance(document, dict):
        logger.debug("Skipping rich text document of unsupported type", document_type=type(document).__name__)
        return ""
    return _render_node(document).strip()


def plain_text_to_rich_text(text: str | None) -> dict[str, Any]:
    """Convert plain text into a rich text document, one paragraph per blank-line separated block."""
    paragraphs: list[dict[str, Any]] = []
    for block in PARAGRAPH_SEPARATOR.split((text or "").replace("\r\n", "\n").strip()):
        if not block.strip():
            continue
        content: list[dict[str, Any]] = []
        for index, line in enumerate(block.split("\n")):
            if index:
                content.append({"type": "hardBreak"})
            if line:
                content.append({"type": "text", "text": line})
        paragraphs.append({"type": "paragraph", "content": content})
    return {"type": "doc", "version": 1, "content": paragraphs}


def build_source_url(source_base_url: str | None, key: str | None) -> str | None:
    """Build the browse URL of a Source issue, when the Source base URL is known."""
    if not source_base_url or not key:
        return None
    return f"{source_base_url.rstrip('/')}/browse/{key}"


def build_identity_marker(source_issue: SourceIssue, synced_status: str | None = None) -> IdentityMarker:
    """Build the identity marker for a Source issue, recording the status the pair is reconciled at and its category."""
    return IdentityMarker(
        source_key=source_issue.key,
        parent_key=source_issue.parent_key,
        synced_status=synced_status if synced_status is not None else source_issue.status,
        category=source_issue.category,
    )


def render_target_body(
    source_issue: SourceIssue,
    template: jinja2.Template,
    source_base_url: str | None = None,
    synced_status: str | None = None,
    max_body_length: int = DEFAULT_MAX_ISSUE_BODY_LENGTH,
) -> str:
    """Render the Target body of a Source issue, including its identity marker.

    The rendered content is truncated so that the body, marker included, fits
    within ``max_body_length``. The marker itself is never truncated.
    """
    context = {
        "key": source_issue.key,
        "title": source_issue.title,
        "description": rich_text_to_plain_text(source_issue.rich_body),
        "status": source_issue.status,
        "category": source_issue.category,
        "priority": source_issue.priority,
        "parent_key": source_issue.parent_key,
        "source_url": build_source_url(source_base_url, source_issue.key),
        "parent_url": build_source_url(source_base_url, source_issue.parent_key),
    }
    try:
        rendered = template.render(**context)
    except jinja2.UndefinedError as exc:
        logger.error("Failed to render Target issue body with template", source_key=source_issue.key, error=str(exc))
        raise
    marker = build_identity_marker(source_issue, synced_status)
    # Content and marker are joined by a blank line
    budget = max(max_body_length - len(render_marker(marker)) - 2, 0)
    content, was_truncated = truncate_string_at_end(rendered.strip(), budget)
    if was_truncated:
        logger.info(
            "Truncated Target issue body",
            source_key=source_issue.key,
            original_length=len(rendered.strip()),
            truncated_length=len(content),
        )
    return inject_marker(content, marker)


def category_from_labels(labels: set[str] | frozenset[str], creation_config: TargetToSourceCreationConfig) -> str | None:
    """Pick the Source category for a Target issue from its labels; the first matching label in sorted order wins."""
    for label in sorted(labels):
        category = creation_config.label_to_category.get(label)
        if category:
            return category
    return creation_config.default_category


def build_source_fields_from_target(
    target_issue: TargetIssue,
    creation_config: TargetToSourceCreationConfig,
    field_mapping: FieldMappingConfig,
    target_url: str | None = None,
) -> dict[str, Any]:
    """Build the Jira ``fields`` payload for a Source issue created from a Target issue."""
    description = strip_marker(target_issue.body)
    if target_url:
        description = f"{description}\n\nOriginal Target issue: {target_url}".strip()
    fields: dict[str, Any] = {
        "project": {"key": creation_config.project_key},
        "summary": target_issue.title,
        "description": plain_text_to_rich_text(description),
        "issuetype": {"name": creation_config.issue_type},
    }
    category = category_from_labels(target_issue.labels, creation_config)
    if category:
        if field_mapping.category_field == "issuetype":
            fields["issuetype"] = {"name": category}
        else:
            fields[field_mapping.category_field] = {"value": category}
    return fields
