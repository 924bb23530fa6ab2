from __future__ import annotations

from abc import ABC
from typing import Any, Literal, Protocol, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class DependencyResolver(Protocol):
    """What the container registry needs from a container.

    ``scenewire.Container`` implements it; any object with a compatible
    ``resolve_dependencies_of`` can be placed in a ``ContainerRegistry``.
    """

    def resolve_dependencies_of(
        self,
        instance: T,
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
    ) -> T: ...


class SceneInstantiatable(ABC):  # noqa: B024
    """Opt-in capability for objects whose dependencies are resolved when a scene creates them.

    When a scene (or a wired loader) materialises an instance of a subclass, the
    container registry calls ``on_resolve`` once per registered container, in
    order, until one call returns without raising.

    The default implementation resolves the instance as its own concrete type
    with the scene tag as component. Override it to add setup before or after
    resolution, or to resolve the instance as one of the interfaces it
    implements. Let errors propagate: they tell the registry to try the next
    container.

    Warning:
        ``on_resolve`` runs right after the object and its children are built
        and before ``awake_from_scene``, so the object may not be fully set up.

    Examples:
        .. code-block:: python

            class LoginScreen(SceneNode, SceneInstantiatable):
                def on_resolve(self, container: DependencyResolver, tag: str | None) -> None:
                    container.resolve_dependencies_of(self, provides=Screen, component=tag)
                    self.title = "Sign in"

    """

    def on_resolve(self, container: DependencyResolver, tag: str | None) -> None:
        """Resolve dependencies of this instance with ``container``.

        Args:
            container: The container being tried.
            tag: The scene tag of the instance, ``None`` when untagged.

        """
        container.resolve_dependencies_of(self, component=tag)


__all__ = ["DependencyResolver", "SceneInstantiatable"]
