from __future__ import annotations

from typing import Any


def _describe(dependency: Any, component: object | None) -> str:
    name = getattr(dependency, "__qualname__", None) or repr(dependency)
    if component is None:
        return name
    return f"{name} (component={component!r})"


class SceneWireError(Exception):
    """Represent a base class for all scenewire-specific failures.

    Catch this type when you want to handle any scenewire error path without
    matching each concrete exception class individually.
    """


class SceneWireInvalidRegistrationError(SceneWireError):
    """Signal invalid registration arguments.

    Raised by ``Container.add_instance``, ``Container.add_concrete`` and
    ``Container.add_factory`` when ``provides`` is missing or cannot be
    inferred, or when ``component`` conflicts with an annotated ``provides``.
    """


class SceneWireProviderDependencyInferenceError(SceneWireInvalidRegistrationError):
    """Signal that required provider dependencies cannot be inferred.

    Common triggers are missing or unresolvable type annotations on required
    constructor or factory parameters.

    Typical fixes include adding concrete parameter annotations or giving the
    parameter a default value.
    """


class SceneWireDependencyNotRegisteredError(SceneWireError):
    """Signal that no registration matches a dependency key and component.

    Raised by ``resolve`` when autoregistration is disabled or not applicable,
    and always by ``resolve_dependencies_of`` when the container has neither an
    exact ``(provides, component)`` registration nor an untagged fallback.

    The ordered container registry treats this error as "try the next
    container".
    """

    def __init__(self, dependency: Any, component: object | None = None) -> None:
        self.dependency = dependency
        self.component = component
        super().__init__(f"{_describe(dependency, component)} is not registered")


class SceneWireResolutionError(SceneWireError):
    """Signal that a registration matched but could not be completed.

    Raised when a nested dependency cannot be resolved, or when a user factory,
    constructor or dependency filler raises. The original exception is chained
    as ``__cause__``.
    """

    def __init__(self, dependency: Any, component: object | None, reason: str) -> None:
        self.dependency = dependency
        self.component = component
        self.reason = reason
        super().__init__(f"Failed to resolve {_describe(dependency, component)}: {reason}")


class SceneWireCircularDependencyError(SceneWireResolutionError):
    """Signal a constructor-level dependency cycle.

    Cycles through dependency fillers are fine for ``Lifetime.OBJECT_GRAPH`` and
    ``Lifetime.SINGLETON`` registrations because the instance is cached before
    its fillers run. Cycles through constructor parameters are not.
    """

    def __init__(self, cycle: list[tuple[Any, object | None]]) -> None:
        self.cycle = cycle
        path = " -> ".join(_describe(dependency, component) for dependency, component in cycle)
        dependency, component = cycle[-1]
        super().__init__(dependency, component, f"circular dependency detected: {path}")


class SceneWireNotInstantiableError(SceneWireError):
    """Signal that a dependency cannot be constructed by the container.

    Raised during autoregistration when the requested key is an abstract class,
    a protocol, or a builtin type. Typical fix is registering a concrete
    implementation with ``add_concrete`` or ``add_factory``.
    """

    def __init__(self, dependency: Any, reason: str) -> None:
        self.dependency = dependency
        super().__init__(f"{_describe(dependency, None)} cannot be instantiated: {reason}")


class SceneWireTagTargetError(SceneWireError, TypeError):
    """Signal an object that cannot carry a scene tag.

    Tags are stored in an identity-keyed side-table holding weak references, so
    the tagged object must support ``weakref.ref``. Classes declaring
    ``__slots__`` need a ``"__weakref__"`` slot.
    """


class SceneWireSceneDefinitionError(SceneWireError):
    """Signal an invalid scene document or a node that cannot be materialised.

    Raised by ``Storyboard`` factories for documents that fail validation, and
    by ``Storyboard.instantiate`` for unknown node types, failing constructors,
    or children declared on objects that are not ``SceneNode`` instances.
    """


class SceneWireSceneNotFoundError(SceneWireSceneDefinitionError, LookupError):
    """Signal an unknown scene identifier or a scene file that does not exist."""


__all__ = [
    "SceneWireCircularDependencyError",
    "SceneWireDependencyNotRegisteredError",
    "SceneWireError",
    "SceneWireInvalidRegistrationError",
    "SceneWireNotInstantiableError",
    "SceneWireProviderDependencyInferenceError",
    "SceneWireResolutionError",
    "SceneWireSceneDefinitionError",
    "SceneWireSceneNotFoundError",
    "SceneWireTagTargetError",
]
