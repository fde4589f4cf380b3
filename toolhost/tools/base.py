"""
ToolHost tool contract.

A tool module exposes ``tools() -> List[ToolUnit]``. Each unit carries a
static description of itself (name, parameters, description) and a
synchronous handler that receives an explicit ``ToolContext`` followed by
its arguments as keyword arguments::

    def _echo(ctx: ToolContext, Msg: str) -> str:
        return Msg

    def tools() -> List[ToolUnit]:
        return [ToolUnit("Echo", _echo, params=(Param("Msg", str, required=True),))]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Tuple


class ToolError(Exception):
    """Raised by a tool to report a failure to the client as error text."""


@dataclass(frozen=True)
class Param:
    """A single declared tool parameter."""

    name: str
    type: Any = str
    required: bool = False
    description: str = ""


@dataclass(frozen=True)
class ToolUnit:
    """Static declaration of one tool, as offered to the registry."""

    name: str
    handler: Callable[..., Any]
    params: Tuple[Param, ...] = ()
    description: Optional[str] = None
    kind: str = "Function"


@dataclass(frozen=True)
class ToolContext:
    """
    Read-only configuration handed to every tool invocation.

    ``settings`` is the free-form ``settings`` section of the configuration.
    """

    server_name: str = "toolhost"
    server_version: str = ""
    settings: Mapping[str, Any] = field(default_factory=dict)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("toolhost.tools"))

    def __post_init__(self) -> None:
        object.__setattr__(self, "settings", MappingProxyType(dict(self.settings)))

    def setting(self, key: str, default: Any = None) -> Any:
        return self.settings.get(key, default)

    def require(self, key: str) -> Any:
        """Return a setting or fail the current tool call if it is missing."""
        value = self.settings.get(key)
        if value is None or value == "":
            raise ToolError(f"Setting '{key}' is not configured (settings.{key} in config.yaml)")
        return value
