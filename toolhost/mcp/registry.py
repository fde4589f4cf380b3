"""Tool registry — builds the immutable name→descriptor index at start-up."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional

from toolhost.mcp.schema import ParameterSchema, ToolDescriptor, infer_schema
from toolhost.tools.base import Param, ToolUnit
from toolhost.tools.source import ToolSource

logger = logging.getLogger(__name__)

# Transport/environment-only switches that never appear in a public schema
EXCLUDED_PARAMS = frozenset({
    "verbose",
    "debug",
    "confirm",
    "whatif",
    "erroraction",
    "warningaction",
    "informationaction",
    "erroractionpreference",
    "outvariable",
    "outbuffer",
    "pipelinevariable",
    "ctx",
    "context",
})

DUPLICATE_POLICIES = ("replace", "reject")


class ToolRegistrationError(Exception):
    """Raised when a tool unit cannot be turned into a descriptor."""


class ToolIndex(Mapping):
    """Read-only, registration-ordered mapping of tool name to descriptor."""

    def __init__(self, descriptors: Optional[Dict[str, ToolDescriptor]] = None):
        self._tools = MappingProxyType(dict(descriptors or {}))

    def __getitem__(self, name: str) -> ToolDescriptor:
        return self._tools[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolIndex({list(self._tools)})"

    def descriptors(self) -> List[ToolDescriptor]:
        return list(self._tools.values())


class ToolRegistry:
    """
    Turns tool units into descriptors and collects them into a ``ToolIndex``.

    The registry is used once, at start-up. A unit that fails to register
    is skipped with a warning and the build carries on with the rest.

    Duplicate names follow ``duplicates``:
    - ``replace``: the later unit wins, a warning is logged.
    - ``reject``: the earlier unit is kept, an error is logged.
    """

    def __init__(
        self,
        exclude_params: Iterable[str] = (),
        duplicates: str = "replace",
    ):
        if duplicates not in DUPLICATE_POLICIES:
            raise ValueError(f"duplicates must be one of {DUPLICATE_POLICIES}, got {duplicates!r}")
        self.excluded = EXCLUDED_PARAMS | {p.lower() for p in exclude_params}
        self.duplicates = duplicates

    # ── Building ──────────────────────────────────────────────────────────

    def build(self, source: ToolSource) -> ToolIndex:
        tools: Dict[str, ToolDescriptor] = {}

        for unit in source.units():
            try:
                descriptor = self.describe(unit)
            except Exception as exc:
                logger.warning("Skipping tool %r: %s", getattr(unit, "name", unit), exc)
                continue

            existing = tools.get(descriptor.name)
            if existing is not None:
                if self.duplicates == "reject":
                    logger.error(
                        "Duplicate tool '%s' rejected; keeping the first registration",
                        descriptor.name,
                    )
                    continue
                logger.warning(
                    "Duplicate tool '%s': later registration replaces the earlier one",
                    descriptor.name,
                )
                # Re-insert so the replacement takes the later position
                del tools[descriptor.name]

            tools[descriptor.name] = descriptor

        logger.info("Registered %d tool(s)", len(tools))
        return ToolIndex(tools)

    def describe(self, unit: ToolUnit) -> ToolDescriptor:
        """Build the descriptor for a single tool unit."""
        if not isinstance(unit, ToolUnit):
            raise ToolRegistrationError(f"not a ToolUnit: {unit!r}")
        name = unit.name
        if not isinstance(name, str) or not name.strip():
            raise ToolRegistrationError(f"tool has no name: {unit!r}")
        if not callable(unit.handler):
            raise ToolRegistrationError(f"{name}: handler is not callable")

        parameters: Dict[str, ParameterSchema] = {}
        required: List[str] = []
        for param in unit.params:
            if not isinstance(param, Param) or not isinstance(param.name, str) or not param.name:
                raise ToolRegistrationError(f"{name}: invalid parameter declaration {param!r}")
            if param.name.lower() in self.excluded:
                continue
            if param.name in parameters:
                raise ToolRegistrationError(f"{name}: parameter '{param.name}' declared twice")
            parameters[param.name] = infer_schema(param.type)
            if param.required:
                required.append(param.name)

        return ToolDescriptor(
            name=name,
            description=self.one_line_description(unit),
            parameters=parameters,
            required=required,
            kind=unit.kind,
            handler=unit.handler,
        )

    @staticmethod
    def one_line_description(unit: ToolUnit) -> str:
        """First non-empty line of the declared description, or ``"<kind>: <name>"``."""
        for line in (unit.description or "").splitlines():
            if line.strip():
                return line.strip()
        return f"{unit.kind}: {unit.name}"
