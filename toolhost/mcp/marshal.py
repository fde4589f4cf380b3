"""Argument marshalling between JSON value trees and native call arguments."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple

_PRIMITIVES = (str, int, float, bool, type(None))


class InvalidArguments(Exception):
    """Raised when ``tools/call`` arguments are not a JSON object."""


def _is_container(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _empty_like(value: Any) -> Any:
    return {} if isinstance(value, Mapping) else []


def _copy_tree(value: Any) -> Any:
    """
    Copy a JSON-shaped tree using an explicit stack.

    Objects become ``dict`` with key order kept, arrays and tuples become
    ``list``, primitives are returned unchanged. Nesting depth is not limited
    by the interpreter's recursion limit.
    """
    if isinstance(value, _PRIMITIVES):
        return value
    if not _is_container(value):
        raise TypeError(f"Not a JSON value: {type(value).__name__}")

    root = _empty_like(value)
    stack: List[Tuple[Any, Any]] = [(value, root)]

    while stack:
        source, target = stack.pop()
        is_object = isinstance(source, Mapping)
        items = source.items() if is_object else enumerate(source)

        for key, child in items:
            if is_object and not isinstance(key, str):
                raise TypeError(f"Object keys must be strings, got {type(key).__name__}")

            if isinstance(child, _PRIMITIVES):
                converted = child
            elif _is_container(child):
                converted = _empty_like(child)
                stack.append((child, converted))
            else:
                raise TypeError(f"Not a JSON value: {type(child).__name__}")

            if is_object:
                target[key] = converted
            else:
                target.append(converted)

    return root


def marshal(value: Any) -> Any:
    """Convert a decoded JSON value into the native argument representation."""
    return _copy_tree(value)


def unmarshal(value: Any) -> Any:
    """Convert native arguments back into a plain JSON tree."""
    return _copy_tree(value)


def marshal_arguments(arguments: Optional[Any]) -> Dict[str, Any]:
    """
    Marshal the ``arguments`` member of a ``tools/call`` request.

    ``None`` means no arguments. Anything other than a JSON object is rejected.
    """
    if arguments is None:
        return {}
    if not isinstance(arguments, Mapping):
        raise InvalidArguments(
            f"Tool arguments must be a JSON object, got {type(arguments).__name__}"
        )
    return marshal(arguments)
