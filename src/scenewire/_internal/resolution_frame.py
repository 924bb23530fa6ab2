from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from scenewire.providers import RegistrationKey


@dataclass(eq=False)
class ResolutionFrame:
    """State shared by one top-level resolution call and its nested calls."""

    owner: Any
    stack: list[RegistrationKey] = field(default_factory=list)
    """Keys currently being constructed, used for cycle detection."""
    graph: dict[RegistrationKey, Any] = field(default_factory=dict)
    """Instances shared for ``Lifetime.OBJECT_GRAPH`` registrations."""


# Context variable for resolution tracking (works with both threads and async tasks)
_current_frame: ContextVar[ResolutionFrame | None] = ContextVar(
    "scenewire_resolution_frame",
    default=None,
)


@contextmanager
def resolution_frame(owner: Any) -> Iterator[ResolutionFrame]:
    """Join the active frame of ``owner`` or open a new one for the duration of the block.

    Nested ``resolve`` calls made by dependency fillers of the same container
    reuse the outer frame, so object-graph instances are shared across them.
    """
    frame = _current_frame.get()
    if frame is not None and frame.owner is owner:
        yield frame
        return

    new_frame = ResolutionFrame(owner=owner)
    token = _current_frame.set(new_frame)
    try:
        yield new_frame
    finally:
        _current_frame.reset(token)


__all__ = ["ResolutionFrame", "resolution_frame"]
