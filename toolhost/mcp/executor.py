"""Tool executor — runs a resolved tool synchronously and wraps its result."""

from __future__ import annotations

import contextlib
import io
import logging
import re
import time
from typing import Any, Dict, List, Optional

from toolhost.mcp.schema import InvocationResult, ToolDescriptor, render_text
from toolhost.tools.base import ToolContext, ToolError

logger = logging.getLogger(__name__)

# CSI / OSC escape sequences plus stray C0 control characters (tab and newlines are kept)
_ANSI_RE = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"
    r"|\x1b[@-Z\\-_]"
    r"|[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]"
)


def strip_ansi(text: str) -> str:
    """Remove terminal escape and control sequences from ``text``."""
    return _ANSI_RE.sub("", text)


def describe_failure(exc: BaseException) -> str:
    if isinstance(exc, ToolError):
        return str(exc) or "Tool failed"
    message = str(exc)
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


class ToolExecutor:
    """
    Executes tool calls one at a time.

    Every handler is called as ``handler(context, **arguments)``. A failing
    tool produces an ``InvocationResult`` with ``isError`` set; it never
    raises out of ``invoke``.
    """

    def __init__(self, context: Optional[ToolContext] = None):
        self.context = context or ToolContext()

    def invoke(self, descriptor: ToolDescriptor, arguments: Optional[Dict[str, Any]] = None) -> InvocationResult:
        arguments = arguments or {}

        missing = self.missing_required(descriptor, arguments)
        if missing:
            return InvocationResult.text(
                f"Missing required parameter(s) for {descriptor.name}: {', '.join(missing)}",
                is_error=True,
            )

        if descriptor.handler is None:
            return InvocationResult.text(f"Tool {descriptor.name} has no handler", is_error=True)

        captured = io.StringIO()
        t0 = time.perf_counter()
        try:
            # Keep stray prints off stdout, which carries protocol messages
            with contextlib.redirect_stdout(captured):
                value = descriptor.handler(self.context, **arguments)
            text = render_text(value)
            is_error = False
        except (Exception, SystemExit) as exc:
            logger.info("Tool %s failed: %s", descriptor.name, exc)
            text = describe_failure(exc)
            is_error = True
        finally:
            elapsed_ms = int((time.perf_counter() - t0) * 1000)
            self._forward_captured(descriptor.name, captured.getvalue())

        logger.debug("Tool %s finished in %d ms (error=%s)", descriptor.name, elapsed_ms, is_error)
        return InvocationResult.text(strip_ansi(text), is_error=is_error)

    @staticmethod
    def missing_required(descriptor: ToolDescriptor, arguments: Dict[str, Any]) -> List[str]:
        return [name for name in descriptor.required if arguments.get(name) is None]

    @staticmethod
    def _forward_captured(tool_name: str, output: str) -> None:
        for line in strip_ansi(output).splitlines():
            if line.strip():
                logger.info("[%s] %s", tool_name, line)
