"""MCP server communication over line-delimited JSON on stdin/stdout."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, BinaryIO, Dict, Optional

logger = logging.getLogger(__name__)

_BOM = "\ufeff"


class MessageParseError(Exception):
    """Raised when an input line is not a JSON object."""


class StdioTransport:
    """
    Exchange JSON-RPC messages one per line (UTF-8, no BOM, ``\\n``-terminated).

    Standard output is reserved for protocol messages; anything diagnostic
    goes through ``logging`` to standard error.
    """

    def __init__(
        self,
        reader: Optional[BinaryIO] = None,
        writer: Optional[BinaryIO] = None,
    ):
        self._reader = reader if reader is not None else sys.stdin.buffer
        self._writer = writer if writer is not None else sys.stdout.buffer
        self._lines_read = 0

    # ── Reading ───────────────────────────────────────────────────────────

    def read_line(self) -> Optional[str]:
        """Read one raw line. Returns ``None`` at end of input."""
        raw = self._reader.readline()
        if not raw:
            return None

        self._lines_read += 1
        line = raw.decode("utf-8", errors="replace")
        if self._lines_read == 1 and line.startswith(_BOM):
            line = line[len(_BOM):]
        line = line.rstrip("\r\n")
        logger.debug("<- %s", line)
        return line

    @staticmethod
    def decode(line: str) -> Dict[str, Any]:
        """
        Parse one line into a message.

        A blank line is an empty message, which the dispatcher ignores.
        """
        if not line.strip():
            return {}
        try:
            message = json.loads(line)
        except (ValueError, RecursionError) as exc:
            # RecursionError: nesting deeper than the decoder can follow
            raise MessageParseError(f"Invalid JSON: {exc}") from exc
        if not isinstance(message, dict):
            raise MessageParseError(
                f"Expected a JSON object, got {type(message).__name__}"
            )
        return message

    # ── Writing ───────────────────────────────────────────────────────────

    def write_message(self, message: Dict[str, Any]) -> None:
        """Write one compact JSON object and flush it immediately."""
        line = json.dumps(message, ensure_ascii=False, separators=(",", ":"), default=str)
        try:
            data = line.encode("utf-8")
        except UnicodeEncodeError:
            # Lone surrogates cannot be UTF-8 encoded; escape them as \uXXXX instead
            line = json.dumps(message, ensure_ascii=True, separators=(",", ":"), default=str)
            data = line.encode("utf-8")
        logger.debug("-> %s", line)
        self._writer.write(data + b"\n")
        self._writer.flush()

    @property
    def lines_read(self) -> int:
        return self._lines_read
