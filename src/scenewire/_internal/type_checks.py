from __future__ import annotations

import inspect
import types
from typing import Any, TypeGuard

_BUILTIN_MODULE = "builtins"


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_protocol_class(candidate: type[Any]) -> bool:
    return bool(getattr(candidate, "_is_protocol", False))


def not_instantiable_reason(candidate: object) -> str | None:
    """Return why ``candidate`` cannot be autoregistered, or ``None`` when it can."""
    if not is_runtime_class(candidate):
        return "only concrete classes can be autoregistered"
    if candidate.__module__ == _BUILTIN_MODULE:
        return "builtin types are never autoregistered"
    if is_protocol_class(candidate):
        return "protocols need an explicit implementation"
    if inspect.isabstract(candidate):
        abstract = ", ".join(sorted(getattr(candidate, "__abstractmethods__", ())))
        return f"abstract methods {abstract} are not implemented"
    return None


__all__ = ["is_protocol_class", "is_runtime_class", "not_instantiable_reason"]
