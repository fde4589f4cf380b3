"""
ToolHost MCP runtime.

Serves registered tools to a single client over line-delimited JSON-RPC 2.0
on stdin/stdout, following the Model Context Protocol:

    stdin line --> Transport --> Dispatcher --> Registry lookup
                                           --> Marshaller --> Executor
    stdout line <-- Transport <-- result / error envelope
"""

from toolhost.mcp.dispatcher import Dispatcher
from toolhost.mcp.executor import ToolExecutor
from toolhost.mcp.marshal import InvalidArguments, marshal, marshal_arguments, unmarshal
from toolhost.mcp.registry import ToolIndex, ToolRegistrationError, ToolRegistry
from toolhost.mcp.schema import InvocationResult, ParameterSchema, ToolDescriptor, infer_schema
from toolhost.mcp.server import MCPServer
from toolhost.mcp.transport import MessageParseError, StdioTransport

__all__ = [
    "Dispatcher",
    "InvalidArguments",
    "InvocationResult",
    "MCPServer",
    "MessageParseError",
    "ParameterSchema",
    "StdioTransport",
    "ToolDescriptor",
    "ToolExecutor",
    "ToolIndex",
    "ToolRegistrationError",
    "ToolRegistry",
    "infer_schema",
    "marshal",
    "marshal_arguments",
    "unmarshal",
]
