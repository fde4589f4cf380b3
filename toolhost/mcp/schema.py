"""Data models for the MCP runtime: parameter schemas, descriptors, envelopes and results."""

from __future__ import annotations

import decimal
import json
import types
import typing
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2024-11-05"

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_NOT_INITIALIZED = -32002

SchemaType = Literal["string", "integer", "number", "boolean", "object"]


class ParameterSchema(BaseModel):
    """JSON-schema fragment for a single tool parameter."""

    model_config = ConfigDict(frozen=True)

    type: SchemaType = "string"


# ── Schema inference ─────────────────────────────────────────────────────

_NAMED_TYPES: Dict[str, SchemaType] = {
    "str": "string",
    "string": "string",
    "char": "string",
    "int": "integer",
    "integer": "integer",
    "int32": "integer",
    "int64": "integer",
    "long": "integer",
    "float": "number",
    "double": "number",
    "decimal": "number",
    "single": "number",
    "number": "number",
    "bool": "boolean",
    "boolean": "boolean",
    "switch": "boolean",
    "switchparameter": "boolean",
    "dict": "object",
    "object": "object",
    "hashtable": "object",
    "psobject": "object",
    "mapping": "object",
    "any": "object",
}


def _schema_type(native: Any) -> SchemaType:
    if isinstance(native, str):
        return _NAMED_TYPES.get(native.strip().lower().strip("[]"), "string")

    if native is Any or native is object:
        return "object"

    origin = typing.get_origin(native)
    if origin is typing.Union or origin is getattr(types, "UnionType", None):
        args = [a for a in typing.get_args(native) if a is not type(None)]
        # Optional[X] is X; a genuine union has no single schema type
        return _schema_type(args[0]) if len(args) == 1 else "string"
    if origin is not None:
        native = origin

    if not isinstance(native, type):
        return "string"
    # bool is a subclass of int, so it has to be checked first
    if issubclass(native, bool):
        return "boolean"
    if issubclass(native, int):
        return "integer"
    if issubclass(native, (float, decimal.Decimal)):
        return "number"
    if issubclass(native, str):
        return "string"
    if issubclass(native, Mapping):
        return "object"
    return "string"


def infer_schema(native_type: Any) -> ParameterSchema:
    """Map a declared parameter type onto the closed schema vocabulary.

    Accepts Python types (``int``, ``Optional[float]``, ``Dict[str, Any]``)
    as well as type names (``"int"``, ``"switch"``, ``"hashtable"``).
    Anything unrecognized is a ``string``.
    """
    return ParameterSchema(type=_schema_type(native_type))


# ── Tool descriptors ─────────────────────────────────────────────────────


class ToolDescriptor(BaseModel):
    """Registered tool: public schema plus its invocation entry point."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    description: str
    parameters: Dict[str, ParameterSchema] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)
    kind: str = "Function"
    handler: Optional[Callable[..., Any]] = Field(default=None, exclude=True, repr=False)

    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {name: schema.model_dump() for name, schema in self.parameters.items()},
            "required": list(self.required),
        }

    def to_wire(self) -> Dict[str, Any]:
        """Shape used in a ``tools/list`` result."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


# ── Invocation results ───────────────────────────────────────────────────


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str = ""


class InvocationResult(BaseModel):
    """Result of a ``tools/call``. Tool failures travel here, not as RPC errors."""

    model_config = ConfigDict(populate_by_name=True)

    content: List[TextContent] = Field(default_factory=list)
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def text(cls, text: str, is_error: bool = False) -> "InvocationResult":
        return cls(content=[TextContent(text=text)], is_error=is_error)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


# ── JSON-RPC envelopes ───────────────────────────────────────────────────


class RpcError(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None

    def to_wire(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class Request(BaseModel):
    """Incoming JSON-RPC message. ``is_notification`` is set when no ``id`` key was sent."""

    id: Any = None
    method: str
    params: Any = None
    is_notification: bool = False

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "Request":
        return cls(
            id=message.get("id"),
            method=message["method"],
            params=message.get("params"),
            is_notification="id" not in message,
        )


def success(request_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def failure(request_id: Any, error: RpcError) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error.to_wire()}


def render_text(value: Any) -> str:
    """Turn a tool's return value into the single text payload."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)
