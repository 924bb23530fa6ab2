from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Iterable, Iterator
from typing import Any

from scenewire.exceptions import SceneWireError
from scenewire.instantiatable import DependencyResolver, SceneInstantiatable
from scenewire.settings import FailureLogging, SceneWireSettings, get_settings

logger = logging.getLogger(__name__)


class ContainerRegistry:
    """Ordered list of containers tried, first to last, for every instantiated scene object.

    The registry does not own its containers: it keeps weak references, so a
    container stays registered only while the application holds on to it.
    Collected containers are pruned silently.

    All reads and writes are guarded by a lock. ``resolve_instance`` iterates a
    snapshot taken when it is called, so changes made by a container while it
    resolves apply to the next lifecycle event.

    Examples:
        .. code-block:: python

            app_container = Container(name="app")
            feature_container = Container(name="feature")

            registry = get_registry()
            registry.replace([feature_container, app_container])

    """

    def __init__(
        self,
        containers: Iterable[DependencyResolver] = (),
        *,
        settings: SceneWireSettings | None = None,
    ) -> None:
        self._refs: list[weakref.ref[DependencyResolver]] = []
        self._lock = threading.RLock()
        self._settings = settings
        self.extend(containers)

    def __repr__(self) -> str:
        return f"ContainerRegistry({list(self.snapshot())!r})"

    def __len__(self) -> int:
        return len(self.snapshot())

    def __iter__(self) -> Iterator[DependencyResolver]:
        return iter(self.snapshot())

    def __contains__(self, container: object) -> bool:
        return any(candidate is container for candidate in self.snapshot())

    def append(self, container: DependencyResolver) -> None:
        """Add ``container`` with the lowest priority."""
        with self._lock:
            self._refs.append(self._ref(container))

    def extend(self, containers: Iterable[DependencyResolver]) -> None:
        with self._lock:
            self._refs.extend(self._ref(container) for container in containers)

    def insert(self, index: int, container: DependencyResolver) -> None:
        """Add ``container`` at ``index``; ``insert(0, ...)`` gives it the highest priority."""
        with self._lock:
            self._prune()
            self._refs.insert(index, self._ref(container))

    def remove(self, container: DependencyResolver) -> None:
        """Remove ``container``.

        Raises:
            ValueError: If the container is not registered.

        """
        with self._lock:
            for index, ref in enumerate(self._refs):
                if ref() is container:
                    del self._refs[index]
                    return
        msg = f"{container!r} is not registered"
        raise ValueError(msg)

    def replace(self, containers: Iterable[DependencyResolver]) -> None:
        """Replace all registered containers, keeping the given order."""
        refs = [self._ref(container) for container in containers]
        with self._lock:
            self._refs = refs

    def clear(self) -> None:
        with self._lock:
            self._refs.clear()

    def snapshot(self) -> tuple[DependencyResolver, ...]:
        """Return the live containers in priority order."""
        with self._lock:
            self._prune()
            containers = (ref() for ref in self._refs)
            return tuple(container for container in containers if container is not None)

    def resolve_instance(self, instance: Any, tag: str | None = None) -> DependencyResolver | None:
        """Resolve dependencies of ``instance`` with the first container that succeeds.

        Containers are tried in order. ``SceneInstantiatable`` instances resolve
        through their ``on_resolve`` hook, other objects through
        ``resolve_dependencies_of`` with ``tag`` as component. A container that
        raises is skipped; errors never propagate to the caller.

        Args:
            instance: The object whose dependencies should be resolved in place.
            tag: The scene tag of the object, ``None`` when untagged.

        Returns:
            The container that resolved the instance, or ``None`` when the
            registry is empty or every container failed.

        """
        containers = self.snapshot()
        if not containers:
            logger.debug("No containers registered, %r left as constructed", instance)
            return None

        policy = self._failure_logging()
        last_error: Exception | None = None
        for container in containers:
            try:
                if isinstance(instance, SceneInstantiatable):
                    instance.on_resolve(container, tag)
                else:
                    container.resolve_dependencies_of(instance, component=tag)
            except SceneWireError as error:
                last_error = error
                if policy is FailureLogging.EACH:
                    logger.warning("%r could not resolve %r (tag=%r): %s", container, instance, tag, error)
                elif policy is FailureLogging.LAST:
                    logger.debug("%r could not resolve %r (tag=%r): %s", container, instance, tag, error)
                continue
            except Exception as error:  # noqa: BLE001
                last_error = error
                if policy is not FailureLogging.OFF:
                    logger.exception("Unexpected error resolving %r (tag=%r) with %r", instance, tag, container)
                continue

            logger.debug("Resolved %r (tag=%r) with %r", instance, tag, container)
            return container

        if policy is not FailureLogging.OFF:
            logger.warning(
                "No container resolved %s (tag=%r), tried %d; last error: %s",
                type(instance).__qualname__,
                tag,
                len(containers),
                last_error,
            )
        return None

    def _failure_logging(self) -> FailureLogging:
        settings = self._settings if self._settings is not None else get_settings()
        return settings.failure_logging

    def _prune(self) -> None:
        live = [ref for ref in self._refs if ref() is not None]
        if len(live) != len(self._refs):
            logger.debug("Dropped %d collected container(s) from the registry", len(self._refs) - len(live))
        self._refs = live

    def _ref(self, container: DependencyResolver) -> weakref.ref[DependencyResolver]:
        if not isinstance(container, DependencyResolver):
            msg = f"{container!r} does not implement resolve_dependencies_of()"
            raise TypeError(msg)
        return weakref.ref(container)


_registry: ContainerRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> ContainerRegistry:
    """Return the process-wide container registry, creating it on first use."""
    global _registry  # noqa: PLW0603
    with _registry_lock:
        if _registry is None:
            _registry = ContainerRegistry()
        return _registry


def set_registry(registry: ContainerRegistry | None) -> ContainerRegistry | None:
    """Install ``registry`` as the process-wide registry.

    Passing ``None`` drops the current registry; the next ``get_registry`` call
    creates an empty one.

    Returns:
        The previously installed registry, if any.

    """
    global _registry  # noqa: PLW0603
    with _registry_lock:
        previous = _registry
        _registry = registry
    return previous


def register_container(container: DependencyResolver) -> None:
    """Append ``container`` to the process-wide registry.

    The registry does not own the container. Keep a reference to it for as
    long as it should resolve scene objects: ``register_container(Container())``
    registers a container that is collected right away.
    """
    get_registry().append(container)


__all__ = [
    "ContainerRegistry",
    "get_registry",
    "register_container",
    "set_registry",
]
