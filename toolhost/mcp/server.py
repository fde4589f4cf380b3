"""Sequential stdio server loop: read a line, dispatch it, write the response."""

from __future__ import annotations

import logging
from typing import Optional

from toolhost.mcp.dispatcher import Dispatcher
from toolhost.mcp.executor import ToolExecutor
from toolhost.mcp.registry import ToolIndex, ToolRegistry
from toolhost.mcp.transport import MessageParseError, StdioTransport
from toolhost.tools.base import ToolContext
from toolhost.tools.source import ModuleToolSource, ToolSource

logger = logging.getLogger(__name__)


class MCPServer:
    """
    Serves one client over a ``StdioTransport`` until end of input.

    Requests are handled strictly in order; a slow tool blocks the session.
    """

    def __init__(self, dispatcher: Dispatcher, transport: Optional[StdioTransport] = None):
        self.dispatcher = dispatcher
        self.transport = transport or StdioTransport()

    def serve(self) -> int:
        """Run until EOF. Returns the process exit code."""
        logger.info("Serving %d tool(s) on stdio", len(self.dispatcher.index))

        while True:
            line = self.transport.read_line()
            if line is None:
                logger.info("End of input, shutting down")
                return 0

            try:
                message = self.transport.decode(line)
            except MessageParseError as exc:
                logger.error("Dropping line %d: %s", self.transport.lines_read, exc)
                continue

            try:
                response = self.dispatcher.handle(message)
                if response is not None:
                    self.transport.write_message(response)
            except Exception:
                # A failed exchange ends only that exchange
                logger.exception("Failed to answer line %d", self.transport.lines_read)

    # ── Construction ──────────────────────────────────────────────────────

    @classmethod
    def from_config(
        cls,
        config,
        transport: Optional[StdioTransport] = None,
        source: Optional[ToolSource] = None,
    ) -> "MCPServer":
        """Build registry, executor and dispatcher from a validated ``ToolHostConfig``."""
        index = build_index(config, source)
        context = ToolContext(
            server_name=config.server.name,
            server_version=config.server.version,
            settings=config.settings,
        )
        dispatcher = Dispatcher(
            index=index,
            executor=ToolExecutor(context),
            server_name=config.server.name,
            server_version=config.server.version,
            protocol_version=config.server.protocol_version,
            strict_initialize=config.server.strict_initialize,
        )
        return cls(dispatcher, transport)


def build_index(config, source: Optional[ToolSource] = None) -> ToolIndex:
    registry = ToolRegistry(
        exclude_params=config.registry.exclude_params,
        duplicates=config.registry.duplicates,
    )
    return registry.build(source or ModuleToolSource(config.registry.modules))
