from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from inspect import Parameter
from typing import Any, TypeAlias, TypeVar, get_type_hints

from typing_extensions import Self

from scenewire.exceptions import (
    SceneWireInvalidRegistrationError,
    SceneWireProviderDependencyInferenceError,
    SceneWireResolutionError,
)
from scenewire.markers import is_injected_annotation, split_component, strip_injected

T = TypeVar("T")

UserDependency: TypeAlias = Any
"""A dependency that been registered or trying to be resolved from the user's code."""

RegistrationKey: TypeAlias = tuple[UserDependency, object | None]
"""A ``(provides, component)`` pair identifying one registration."""

DependencyFiller: TypeAlias = Callable[[Any, Any], None]
"""A callable ``filler(container, instance)`` run after an instance is resolved."""

_VARIADIC_KINDS = (Parameter.VAR_POSITIONAL, Parameter.VAR_KEYWORD)


class Lifetime(str, Enum):
    """Defines the lifetime of a service in the container."""

    TRANSIENT = "transient"
    """A new instance is created every time the service is requested."""

    OBJECT_GRAPH = "object_graph"
    """Instance is shared within one top-level resolution call, new across calls."""

    SINGLETON = "singleton"
    """A single instance is created and shared for the lifetime of the container."""


@dataclass(frozen=True, slots=True)
class ProviderDependency:
    """A constructor or factory parameter resolved from the container."""

    name: str
    provides: UserDependency
    component: object | None
    has_default: bool


@dataclass(frozen=True, slots=True)
class InjectedAttribute:
    """A class attribute annotated with ``Injected[...]``."""

    name: str
    provides: UserDependency
    component: object | None


@dataclass(kw_only=True)
class ProviderSpec:
    """A specification of a provider registered in the container."""

    provides: UserDependency
    """The dependency type that this provider supplies."""
    component: object | None = None
    """The component (scene tag) qualifying ``provides``; ``None`` for the default registration."""

    instance: Any = None
    """A pre-built instance, used when ``has_instance`` is true."""
    has_instance: bool = False
    """True for ``add_instance`` registrations."""
    concrete_type: type[Any] | None = None
    """An optional concrete type instantiated to produce the dependency."""
    factory: Callable[..., Any] | None = None
    """An optional factory function producing the dependency."""
    dependencies: list[ProviderDependency] = field(default_factory=list)
    """Parameters of the concrete type or factory resolved from the container."""
    lifetime: Lifetime = Lifetime.OBJECT_GRAPH
    """How resolved instances are shared."""
    fillers: list[DependencyFiller] = field(default_factory=list)
    """Callables run on every resolved instance, in registration order."""

    @property
    def key(self) -> RegistrationKey:
        return (self.provides, self.component)

    def create(self, **kwargs: Any) -> Any:
        if self.concrete_type is not None:
            return self.concrete_type(**kwargs)
        if self.factory is not None:
            return self.factory(**kwargs)
        msg = f"Provider for {self.provides!r} has nothing to build"
        raise SceneWireInvalidRegistrationError(msg)


class Registration:
    """Handle returned by ``Container.add_*`` methods.

    Use it to attach dependency fillers that run after the instance exists. A
    filler receives the container and the resolved instance, and is the place
    to resolve properties that point back to the instance itself.

    Examples:
        .. code-block:: python

            container.add_concrete(LoginScreen, component="login").resolve_dependencies(
                lambda container, screen: setattr(screen, "auth", container.resolve(AuthService)),
            )

    """

    def __init__(self, spec: ProviderSpec) -> None:
        self._spec = spec

    @property
    def provides(self) -> UserDependency:
        return self._spec.provides

    @property
    def component(self) -> object | None:
        return self._spec.component

    @property
    def lifetime(self) -> Lifetime:
        return self._spec.lifetime

    def resolve_dependencies(self, filler: DependencyFiller) -> Self:
        """Attach a filler run on every instance resolved through this registration.

        Args:
            filler: Callable receiving ``(container, instance)``.

        Returns:
            This registration, so calls can be chained.

        """
        if not callable(filler):
            msg = f"Dependency filler must be callable, got {filler!r}"
            raise SceneWireInvalidRegistrationError(msg)
        self._spec.fillers.append(filler)
        return self

    def __repr__(self) -> str:
        return (
            f"Registration(provides={self.provides!r}, component={self.component!r}, "
            f"lifetime={self.lifetime.value})"
        )


class ProviderDependenciesExtractor:
    """Infer constructor and factory dependencies from parameter annotations."""

    def extract(self, provider: Callable[..., Any]) -> list[ProviderDependency]:
        init_func: Any = provider.__init__ if isinstance(provider, type) else provider  # type: ignore[misc]
        if init_func is object.__init__:
            return []
        try:
            signature = inspect.signature(provider)
        except (TypeError, ValueError) as error:
            msg = f"Cannot inspect the signature of {provider!r}"
            raise SceneWireProviderDependencyInferenceError(msg) from error
        try:
            type_hints = get_type_hints(init_func, include_extras=True)
        except (NameError, TypeError) as error:
            msg = f"Cannot evaluate annotations of {provider!r}: {error}"
            raise SceneWireProviderDependencyInferenceError(msg) from error

        dependencies: list[ProviderDependency] = []
        for parameter in signature.parameters.values():
            if parameter.kind in _VARIADIC_KINDS:
                continue
            has_default = parameter.default is not Parameter.empty
            annotation = type_hints.get(parameter.name, Parameter.empty)
            if annotation is Parameter.empty or parameter.kind is Parameter.POSITIONAL_ONLY:
                if has_default:
                    continue
                msg = (
                    f"Parameter {parameter.name!r} of {provider!r} needs a type annotation "
                    "or a default value"
                )
                raise SceneWireProviderDependencyInferenceError(msg)
            provides, component = split_component(annotation)
            dependencies.append(
                ProviderDependency(
                    name=parameter.name,
                    provides=provides,
                    component=component,
                    has_default=has_default,
                ),
            )
        return dependencies


class ProviderReturnTypeExtractor:
    """Infer the ``provides`` key of a factory from its return annotation."""

    def extract(self, factory: Callable[..., Any]) -> UserDependency:
        if isinstance(factory, type):
            return factory
        try:
            type_hints = get_type_hints(factory, include_extras=True)
        except (NameError, TypeError) as error:
            msg = f"Cannot evaluate the return annotation of {factory!r}: {error}"
            raise SceneWireInvalidRegistrationError(msg) from error
        return_type = type_hints.get("return")
        if return_type is None or return_type is type(None):
            msg = (
                f"Factory {factory!r} has no return annotation; "
                "annotate it or pass 'provides' explicitly"
            )
            raise SceneWireInvalidRegistrationError(msg)
        return return_type


class InjectedAttributesExtractor:
    """Collect ``Injected[...]`` class attributes, cached per class."""

    def __init__(self) -> None:
        self._cache: dict[type[Any], tuple[InjectedAttribute, ...]] = {}

    def extract(self, cls: type[Any]) -> tuple[InjectedAttribute, ...]:
        cached = self._cache.get(cls)
        if cached is not None:
            return cached
        try:
            type_hints = get_type_hints(cls, include_extras=True)
        except (NameError, TypeError) as error:
            msg = f"cannot evaluate attribute annotations: {error}"
            raise SceneWireResolutionError(cls, None, msg) from error

        attributes: list[InjectedAttribute] = []
        for name, annotation in type_hints.items():
            if not is_injected_annotation(annotation):
                continue
            provides, component = split_component(strip_injected(annotation))
            attributes.append(InjectedAttribute(name=name, provides=provides, component=component))
        result = tuple(attributes)
        self._cache[cls] = result
        return result


__all__ = [
    "DependencyFiller",
    "InjectedAttribute",
    "InjectedAttributesExtractor",
    "Lifetime",
    "ProviderDependenciesExtractor",
    "ProviderDependency",
    "ProviderReturnTypeExtractor",
    "ProviderSpec",
    "Registration",
    "RegistrationKey",
]
