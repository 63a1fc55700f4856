"""repoctx template rendering.

Jinja2 templates for the text contexts handed to completion backends.
"""

from repoctx.templates.renderer import ContextRenderer, format_datetime

__all__ = ["ContextRenderer", "format_datetime"]
