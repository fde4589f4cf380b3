"""Tool sources: explicit enumeration of tool units from configured modules."""

from __future__ import annotations

import importlib
import logging
from typing import Iterable, Iterator, List, Sequence

from toolhost.tools.base import ToolUnit

logger = logging.getLogger(__name__)

DEFAULT_MODULES = [
    "toolhost.tools.builtin",
    "toolhost.tools.network",
    "toolhost.tools.mail",
]


class ToolSource:
    """Anything that can enumerate tool units for the registry."""

    def units(self) -> Iterator[ToolUnit]:
        raise NotImplementedError


class StaticToolSource(ToolSource):
    """A fixed list of tool units (mostly useful for embedding and tests)."""

    def __init__(self, units: Iterable[ToolUnit]):
        self._units = list(units)

    def units(self) -> Iterator[ToolUnit]:
        return iter(self._units)


class ModuleToolSource(ToolSource):
    """
    Collects tool units from modules that expose ``tools() -> List[ToolUnit]``.

    A module that cannot be imported, or whose ``tools()`` fails, is skipped
    with a warning; the remaining modules are still enumerated.
    """

    def __init__(self, modules: Sequence[str] = DEFAULT_MODULES):
        self.modules = list(modules)

    def units(self) -> Iterator[ToolUnit]:
        for module_name in self.modules:
            for unit in self._load_module(module_name):
                yield unit

    @staticmethod
    def _load_module(module_name: str) -> List[ToolUnit]:
        try:
            module = importlib.import_module(module_name)
        except Exception as exc:
            logger.warning("Skipping tool module %s: import failed: %s", module_name, exc)
            return []

        factory = getattr(module, "tools", None)
        if not callable(factory):
            logger.warning("Skipping tool module %s: no tools() function", module_name)
            return []

        try:
            return list(factory())
        except Exception as exc:
            logger.warning("Skipping tool module %s: tools() failed: %s", module_name, exc)
            return []
