"""
ToolHost - MCP server for automation tools.

A single-process server that exposes registered automation tools (DNS,
network reachability, HTTP, mail relay, ...) to an AI-assistant host over
the Model Context Protocol.

Architecture:
- One client, line-delimited JSON-RPC 2.0 on stdin/stdout
- Diagnostics on stderr only
- Tool index built once at start-up from configured tool modules
- Requests handled strictly in order, one at a time
"""

__version__ = "1.0.0"
__author__ = "ToolHost Team"
__license__ = "Apache-2.0"

from toolhost.mcp.server import MCPServer
from toolhost.tools.base import Param, ToolContext, ToolError, ToolUnit

__all__ = [
    "MCPServer",
    "Param",
    "ToolContext",
    "ToolError",
    "ToolUnit",
    "__version__",
]
