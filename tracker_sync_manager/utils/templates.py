"""Contains utilities for building the Jinja2 templates Target issue bodies are rendered with."""

from pathlib import Path

import jinja2
import structlog

from tracker_sync_manager.utils.constants import DEFAULT_ISSUE_BODY_TEMPLATE

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def construct_jinja2_environment() -> jinja2.Environment:
    """Construct a Jinja2 environment."""
    jinja_env = jinja2.Environment(undefined=jinja2.StrictUndefined, keep_trailing_newline=False)
    return jinja_env


def construct_jinja2_template_from_string(template_string: str, environment: jinja2.Environment | None = None) -> jinja2.Template:
    """Construct a Jinja2 template from a string."""
    if environment is None:
        environment = construct_jinja2_environment()
    return environment.from_string(template_string)


def construct_jinja2_template_from_file(template_path: Path | str, environment: jinja2.Environment | None = None) -> jinja2.Template:
    """Construct a Jinja2 template from a file."""
    if environment is None:
        environment = construct_jinja2_environment()
    try:
        with open(template_path, encoding="utf-8") as f:
            template_content = f.read()
    except FileNotFoundError:
        logger.error("Jinja2 template not found", template_path=template_path)
        raise
    return environment.from_string(template_content)


def load_issue_body_template(template_path: Path | str | None) -> jinja2.Template:
    """Load the configured Target issue body template, falling back to the built-in default."""
    if template_path is None:
        return construct_jinja2_template_from_string(DEFAULT_ISSUE_BODY_TEMPLATE)
    logger.info("Loading Target issue body template", template_path=str(template_path))
    return construct_jinja2_template_from_file(template_path)
