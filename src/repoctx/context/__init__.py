"""Query context assembly."""

from repoctx.context.builder import ContextBuilder, truncate_content

__all__ = ["ContextBuilder", "truncate_content"]
