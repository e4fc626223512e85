"""Shared constants used across the application."""

# This file is intended to hold shared constants.

# Identity Marker Constants
# -------------------------

METADATA_MARKER_NAME = "tracker-sync-metadata"
"""Name that opens the hidden comment embedding the identity marker."""

METADATA_COMMENT_START = f"<!-- {METADATA_MARKER_NAME}"
"""Opening fragment of the hidden comment embedding the identity marker in a Target issue body."""

METADATA_COMMENT_END = "-->"
"""Closing fragment of the hidden comment embedding the identity marker."""

# Field Transform Constants
# -------------------------

DEFAULT_PRIORITY_LABELS: dict[str, str] = {
    "Critical": "critical",
    "High": "high",
    "Medium": "normal",
    "Low": "low",
}
"""Default Source priority to Target label table."""

DEFAULT_CATEGORIES: list[str] = ["Bug", "Epic", "Story", "Task", "Idea"]
"""Default set of Source categories whose lowercase names are managed as type labels."""

DEFAULT_ISSUE_BODY_TEMPLATE = """{{ description }}
{%- if parent_key %}

Parent: {% if parent_url %}[{{ parent_key }}]({{ parent_url }}){% else %}{{ parent_key }}{% endif %}
{%- endif %}
{%- if source_url %}

Source: [{{ key }}]({{ source_url }})
{%- endif %}"""
"""Jinja2 template used to render Target issue bodies when no template file is configured."""

DEFAULT_SOURCE_JQL = "updated > -1d"
"""Default JQL used to select Source issues for a reconciliation pass."""

# Issue Body Truncation Constants
# -------------------------------

DEFAULT_MAX_ISSUE_BODY_LENGTH = 60000
"""Default maximum length for Target issue bodies (leaves margin for GitHub's 65,536 limit)."""

TRUNCATION_SUFFIX = "\n... [truncated - {remaining} characters removed]"
"""Suffix template appended to truncated content. Use .format(remaining=N) to fill in count."""

# Label Setup Constants
# ---------------------

DEFAULT_CATEGORY_LABEL_COLOR = "0052CC"
"""Color of the category labels created by the label setup command."""

DEFAULT_PRIORITY_LABEL_COLOR = "D93F0B"
"""Color of the priority labels created by the label setup command."""

# Retry Constants
# ---------------

DEFAULT_MAX_RETRIES = 5
"""Default number of retries for rate-limited or transient adapter calls."""

DEFAULT_INITIAL_RETRY_DELAY = 2.0
"""Default initial delay in seconds before the first retry."""

DEFAULT_MAX_RETRY_DELAY = 60.0
"""Default maximum delay in seconds between retries."""

# Jira API Constants
# ------------------

JIRA_SEARCH_PAGE_SIZE = 50
"""Maximum number of issues requested per page from the Jira search endpoint."""

JIRA_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
"""HTTP status codes returned by Jira that are considered transient."""
