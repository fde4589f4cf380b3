"""
ToolHost tools module.

Tool units are the external collaborators served over MCP. Each tool module
exposes ``tools() -> List[ToolUnit]``.
"""

from toolhost.tools.base import Param, ToolContext, ToolError, ToolUnit
from toolhost.tools.source import ModuleToolSource, StaticToolSource, ToolSource

__all__ = [
    "ModuleToolSource",
    "Param",
    "StaticToolSource",
    "ToolContext",
    "ToolError",
    "ToolSource",
    "ToolUnit",
]
