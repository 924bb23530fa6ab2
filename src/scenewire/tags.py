"""Identity-keyed scene tags for objects the library does not own.

Scene objects carry an optional string tag naming the registration used to
resolve their dependencies. The tag lives in a side-table rather than on the
object so any weakly referenceable object can carry one: entries hold weak
references and disappear when the object is garbage collected.
"""

from __future__ import annotations

import threading
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from scenewire.exceptions import SceneWireTagTargetError

Tag: TypeAlias = str | None
TagListener: TypeAlias = Callable[[Any, str | None, str | None], None]
"""A callable ``listener(instance, old_tag, new_tag)``."""


@dataclass
class _TagEntry:
    ref: weakref.ref[Any]
    tag: str | None
    instantiated: bool = False


class TagTable:
    """Map object identity to a scene tag without extending object lifetime."""

    def __init__(self) -> None:
        self._entries: dict[int, _TagEntry] = {}
        self._listeners: list[TagListener] = []
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, instance: object) -> bool:
        return self._entry(instance) is not None

    def get(self, instance: object) -> str | None:
        """Return the tag of ``instance``, ``None`` when untagged."""
        entry = self._entry(instance)
        return entry.tag if entry is not None else None

    def set(self, instance: object, tag: str | None) -> None:
        """Store ``tag`` for ``instance`` and notify listeners when the value changed."""
        with self._lock:
            old_tag, changed = self._store(instance, tag)
            listeners = list(self._listeners)
        if changed:
            self._notify(listeners, instance, old_tag, tag)

    def mark_instantiated(self, instance: object, tag: str | None) -> bool:
        """Record ``tag`` and the lifecycle event for ``instance``.

        Returns:
            ``True`` the first time for a given instance, ``False`` afterwards.

        """
        with self._lock:
            entry = self._entry(instance)
            if entry is not None and entry.instantiated:
                return False
            old_tag, changed = self._store(instance, tag)
            self._entries[id(instance)].instantiated = True
            listeners = list(self._listeners)
        if changed:
            self._notify(listeners, instance, old_tag, tag)
        return True

    def is_instantiated(self, instance: object) -> bool:
        entry = self._entry(instance)
        return entry is not None and entry.instantiated

    def observe(self, listener: TagListener) -> Callable[[], None]:
        """Subscribe to tag changes.

        Args:
            listener: Called as ``listener(instance, old_tag, new_tag)`` after a
                tag changes value.

        Returns:
            A callable removing the subscription.

        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _store(self, instance: object, tag: str | None) -> tuple[str | None, bool]:
        entry = self._entry(instance)
        if entry is None:
            self._entries[id(instance)] = _TagEntry(ref=self._ref(instance), tag=tag)
            return None, tag is not None
        old_tag = entry.tag
        entry.tag = tag
        return old_tag, old_tag != tag

    @staticmethod
    def _notify(
        listeners: list[TagListener],
        instance: object,
        old_tag: str | None,
        new_tag: str | None,
    ) -> None:
        for listener in listeners:
            listener(instance, old_tag, new_tag)

    def _entry(self, instance: object) -> _TagEntry | None:
        with self._lock:
            entry = self._entries.get(id(instance))
            # ids are reused after collection, so the entry must still point at this object
            if entry is None or entry.ref() is not instance:
                return None
            return entry

    def _ref(self, instance: object) -> weakref.ref[Any]:
        key = id(instance)

        def _discard(ref: weakref.ref[Any]) -> None:
            with self._lock:
                entry = self._entries.get(key)
                if entry is not None and entry.ref is ref:
                    del self._entries[key]

        try:
            return weakref.ref(instance, _discard)
        except TypeError as error:
            msg = (
                f"{type(instance).__qualname__} objects cannot carry a scene tag: "
                "they do not support weak references"
            )
            raise SceneWireTagTargetError(msg) from error


scene_tags = TagTable()
"""The process-wide tag table used by scenes and the lifecycle event."""


def get_tag(instance: object) -> str | None:
    """Return the scene tag of ``instance`` from the process-wide table."""
    return scene_tags.get(instance)


def set_tag(instance: object, tag: str | None) -> None:
    """Set the scene tag of ``instance`` in the process-wide table.

    Meant for loaders materialising objects. Setting a tag does not resolve
    dependencies; ``did_instantiate`` does.
    """
    scene_tags.set(instance, tag)


class SceneTag:
    """Read-only attribute exposing an object's scene tag."""

    def __set_name__(self, owner: type[Any], name: str) -> None:
        self.name = name

    def __get__(self, obj: Any, objtype: type[Any] | None = None) -> Any:
        if obj is None:
            return self
        return scene_tags.get(obj)

    def __set__(self, obj: Any, value: Any) -> None:
        msg = f"{getattr(self, 'name', 'scene_tag')!r} is read-only; it is set when the scene is loaded"
        raise AttributeError(msg)


__all__ = ["SceneTag", "Tag", "TagListener", "TagTable", "get_tag", "scene_tags", "set_tag"]
