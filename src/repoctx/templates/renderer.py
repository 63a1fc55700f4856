"""Template renderer for assembled query contexts.

Renders context text using Jinja2 templates shipped with the package.
Output is deterministic: the same inputs always produce the same text.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from jinja2 import Environment, PackageLoader, TemplateError, TemplateNotFound, select_autoescape

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "context.md.j2"


def format_datetime(dt: datetime | str | None) -> str:
    """Format a datetime for display.

    Args:
        dt: Datetime object or ISO string

    Returns:
        Formatted date string
    """
    if dt is None:
        return "N/A"

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


class ContextRenderer:
    """Renders context templates.

    Usage:
        renderer = ContextRenderer()
        text = renderer.render(query="...", structure_json="{}", files=[])
    """

    def __init__(self) -> None:
        self._env = Environment(
            loader=PackageLoader("repoctx", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["format_datetime"] = format_datetime

    def render(self, template_name: str = DEFAULT_TEMPLATE, **context: Any) -> str:
        """Render a template with the given variables.

        Raises:
            ValueError: If the template is missing or fails to render
        """
        try:
            template = self._env.get_template(template_name)
        except TemplateNotFound as e:
            logger.error("Failed to load template %s: %s", template_name, e)
            raise ValueError(f"Template not found: {template_name}") from e

        try:
            rendered = template.render(**context)
        except TemplateError as e:
            logger.error("Template rendering failed: %s", e)
            raise ValueError(f"Template rendering failed: {e}") from e

        logger.debug("Rendered %s (%d characters)", template_name, len(rendered))
        return rendered
