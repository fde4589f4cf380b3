"""JSON-RPC request dispatch for the MCP methods ToolHost serves."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from toolhost.mcp.executor import ToolExecutor
from toolhost.mcp.marshal import InvalidArguments, marshal_arguments
from toolhost.mcp.registry import ToolIndex
from toolhost.mcp.schema import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PROTOCOL_VERSION,
    SERVER_NOT_INITIALIZED,
    Request,
    RpcError,
    failure,
    success,
)

logger = logging.getLogger(__name__)


class RpcFault(Exception):
    """A request-level failure that maps onto a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.error = RpcError(code=code, message=message, data=data)


class Dispatcher:
    """
    Routes one decoded message to its handler and builds the response envelope.

    ``handle()`` returns the response to write, or ``None`` when nothing must
    be written (notifications and empty messages).
    """

    # Methods allowed before the handshake when strict_initialize is on
    _PRE_INIT_METHODS = frozenset({"initialize", "ping"})

    def __init__(
        self,
        index: ToolIndex,
        executor: ToolExecutor,
        server_name: str = "toolhost",
        server_version: str = "",
        protocol_version: str = PROTOCOL_VERSION,
        strict_initialize: bool = False,
    ):
        self.index = index
        self.executor = executor
        self.server_name = server_name
        self.server_version = server_version
        self.protocol_version = protocol_version
        self.strict_initialize = strict_initialize
        self.initialized = False
        self._routes: Dict[str, Callable[[Request], Any]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "prompts/list": self._prompts_list,
        }

    # ── Entry point ───────────────────────────────────────────────────────

    def handle(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if not message:
            return None

        has_id = "id" in message
        request_id = message.get("id")

        try:
            request = Request.from_message(message)
        except (KeyError, ValidationError):
            if not has_id:
                logger.warning("Ignoring malformed notification: %s", message)
                return None
            return failure(request_id, RpcError(code=INVALID_REQUEST, message="Invalid Request"))

        if request.method == "notifications/initialized":
            self.initialized = True
            return None

        try:
            handler = self._routes.get(request.method)
            if handler is None:
                if request.is_notification:
                    logger.debug("Ignoring notification %s", request.method)
                    return None
                raise RpcFault(METHOD_NOT_FOUND, "Method not implemented")

            if (
                self.strict_initialize
                and not self.initialized
                and request.method not in self._PRE_INIT_METHODS
            ):
                raise RpcFault(SERVER_NOT_INITIALIZED, "Server not initialized")

            result = handler(request)
        except RpcFault as fault:
            if request.is_notification:
                logger.warning("Notification %s failed: %s", request.method, fault)
                return None
            return failure(request.id, fault.error)
        except Exception as exc:
            logger.exception("Internal error handling %s", request.method)
            if request.is_notification:
                return None
            return failure(
                request.id,
                RpcError(code=INTERNAL_ERROR, message="Internal error", data=str(exc)),
            )

        if request.is_notification:
            return None
        return success(request.id, result)

    # ── Handlers ──────────────────────────────────────────────────────────

    def _initialize(self, request: Request) -> Dict[str, Any]:
        self.initialized = True
        return {
            "protocolVersion": self.protocol_version,
            "serverInfo": {"name": self.server_name, "version": self.server_version},
            "capabilities": {"tools": {}},
        }

    def _ping(self, request: Request) -> Dict[str, Any]:
        return {}

    def _tools_list(self, request: Request) -> Dict[str, Any]:
        return {"tools": [descriptor.to_wire() for descriptor in self.index.descriptors()]}

    def _resources_list(self, request: Request) -> Dict[str, Any]:
        return {"resources": []}

    def _prompts_list(self, request: Request) -> Dict[str, Any]:
        return {"prompts": []}

    def _tools_call(self, request: Request) -> Dict[str, Any]:
        params = request.params if isinstance(request.params, Mapping) else {}
        name = params.get("name")

        descriptor = self.index.get(name) if isinstance(name, str) else None
        if descriptor is None:
            raise RpcFault(METHOD_NOT_FOUND, f"Unknown tool: {name}")

        try:
            arguments = marshal_arguments(params.get("arguments"))
        except InvalidArguments as exc:
            raise RpcFault(INVALID_PARAMS, str(exc))

        logger.info("Calling tool %s", name)
        return self.executor.invoke(descriptor, arguments).to_wire()
