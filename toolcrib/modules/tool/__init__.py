"""Tool module — tool records whose custom attributes follow the category schema."""

from toolcrib.modules.tool.service import ToolService

__all__ = [
    "ToolService",
]
