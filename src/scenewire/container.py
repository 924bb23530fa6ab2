from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from typing import Any, Literal, TypeVar, overload

from scenewire._internal.resolution_frame import ResolutionFrame, resolution_frame
from scenewire._internal.type_checks import is_runtime_class, not_instantiable_reason
from scenewire.exceptions import (
    SceneWireCircularDependencyError,
    SceneWireDependencyNotRegisteredError,
    SceneWireError,
    SceneWireInvalidRegistrationError,
    SceneWireNotInstantiableError,
    SceneWireProviderDependencyInferenceError,
    SceneWireResolutionError,
)
from scenewire.markers import normalize_component, split_component
from scenewire.providers import (
    InjectedAttributesExtractor,
    Lifetime,
    ProviderDependenciesExtractor,
    ProviderReturnTypeExtractor,
    ProviderSpec,
    Registration,
    RegistrationKey,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
_MISSING: Any = object()


def _is_infer(value: object) -> bool:
    return isinstance(value, str) and value == "infer"


class Container:
    """Manage dependency registration and resolution.

    Registrations are keyed by ``(provides, component)``. The component is an
    optional tag that narrows which registration applies when several exist for
    the same type; lookups with a component fall back to the untagged
    registration, untagged lookups never match a tagged one.

    Besides building new objects with ``resolve``, the container can complete an
    object that was created elsewhere (for example by a scene loader) with
    ``resolve_dependencies_of``. In that case the registration is used as if it
    had produced the passed instance: ``Injected[...]`` attributes and
    dependency fillers run, the factory does not.
    """

    def __init__(
        self,
        default_lifetime: Lifetime = Lifetime.OBJECT_GRAPH,
        *,
        autoregister_concrete_types: bool = True,
        name: str | None = None,
    ) -> None:
        """Initialize a container and configure default registration behavior.

        Args:
            default_lifetime: Default lifetime used by registrations that omit
                ``lifetime`` and by autoregistered types.
            autoregister_concrete_types: Enable on-demand concrete type
                autoregistration during ``resolve``. ``resolve_dependencies_of``
                never autoregisters.
            name: Optional label used in logs and ``repr``.

        Examples:
            .. code-block:: python

                container = Container()

                strict_container = Container(autoregister_concrete_types=False)

        """
        self.name = name
        self._default_lifetime = default_lifetime
        self._autoregister_concrete_types = autoregister_concrete_types

        self._specs: dict[RegistrationKey, ProviderSpec] = {}
        self._singletons: dict[RegistrationKey, Any] = {}
        self._lock = threading.RLock()

        self._dependencies_extractor = ProviderDependenciesExtractor()
        self._return_type_extractor = ProviderReturnTypeExtractor()
        self._injected_attributes_extractor = InjectedAttributesExtractor()

    def __repr__(self) -> str:
        return f"Container(name={self.name!r}, registrations={len(self._specs)})"

    # region Registration Methods
    def add_instance(
        self,
        instance: T,
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
    ) -> Registration:
        """Register a pre-built instance as a provider.

        Re-registering the same dependency key overrides the previous
        registration.

        Args:
            instance: Instance value to return on resolution.
            provides: Dependency key to bind. Use ``"infer"`` to bind by
                ``type(instance)``.
            component: Optional component (tag) qualifying ``provides``.

        Returns:
            The registration handle.

        Raises:
            SceneWireInvalidRegistrationError: If ``provides`` is ``None``.

        Examples:
            .. code-block:: python

                settings = Settings(api_url="https://api.example.com")
                container.add_instance(settings)

                resolved = container.resolve(Settings)

        """
        resolved_provides = type(instance) if _is_infer(provides) else provides
        provides_key, component_key = self._registration_key(
            resolved_provides,
            component,
            method_name="add_instance",
        )
        return self._register(
            ProviderSpec(
                provides=provides_key,
                component=component_key,
                instance=instance,
                has_instance=True,
                lifetime=Lifetime.SINGLETON,
            ),
        )

    def add_concrete(
        self,
        concrete_type: type[Any],
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
        lifetime: Lifetime | Literal["from_container"] = "from_container",
    ) -> Registration:
        """Register a concrete type provider.

        Constructor dependencies are inferred from ``__init__`` annotations;
        ``Annotated[T, Component("x")]`` parameters resolve the ``"x"``
        registration of ``T``.

        Args:
            concrete_type: Concrete class to instantiate.
            provides: Dependency key produced by this provider. ``"infer"`` uses
                ``concrete_type`` directly.
            component: Optional component (tag) qualifying ``provides``.
            lifetime: Provider lifetime, or ``"from_container"`` to inherit the
                container default.

        Returns:
            The registration handle, used to attach dependency fillers.

        Raises:
            SceneWireInvalidRegistrationError: If ``concrete_type`` is not an
                instantiable class.
            SceneWireProviderDependencyInferenceError: If constructor
                dependencies cannot be inferred.

        Examples:
            .. code-block:: python

                container.add_concrete(SqlUserRepository, provides=UserRepository)
                container.add_concrete(LoginScreen, component="login")

        """
        if not is_runtime_class(concrete_type):
            msg = f"add_concrete() expects a class, got {concrete_type!r}"
            raise SceneWireInvalidRegistrationError(msg)
        reason = not_instantiable_reason(concrete_type)
        if reason is not None:
            msg = f"add_concrete() cannot register {concrete_type.__qualname__}: {reason}"
            raise SceneWireInvalidRegistrationError(msg)

        resolved_provides = concrete_type if _is_infer(provides) else provides
        provides_key, component_key = self._registration_key(
            resolved_provides,
            component,
            method_name="add_concrete",
        )
        return self._register(
            ProviderSpec(
                provides=provides_key,
                component=component_key,
                concrete_type=concrete_type,
                dependencies=self._dependencies_extractor.extract(concrete_type),
                lifetime=self._resolve_lifetime(lifetime),
            ),
        )

    def add_factory(
        self,
        factory: Callable[..., Any],
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
        lifetime: Lifetime | Literal["from_container"] = "from_container",
    ) -> Registration:
        """Register a factory provider.

        Args:
            factory: Callable producing the dependency. Its parameters are
                resolved from the container like constructor parameters.
            provides: Dependency key produced by this provider. ``"infer"`` uses
                the factory return annotation.
            component: Optional component (tag) qualifying ``provides``.
            lifetime: Provider lifetime, or ``"from_container"`` to inherit the
                container default.

        Returns:
            The registration handle, used to attach dependency fillers.

        Raises:
            SceneWireInvalidRegistrationError: If ``factory`` is not callable or
                ``provides`` cannot be inferred.
            SceneWireProviderDependencyInferenceError: If factory dependencies
                cannot be inferred.

        Examples:
            .. code-block:: python

                def build_client(settings: Settings) -> ApiClient:
                    return ApiClient(settings.api_url)


                container.add_factory(build_client, lifetime=Lifetime.SINGLETON)

        """
        if not callable(factory):
            msg = f"add_factory() expects a callable, got {factory!r}"
            raise SceneWireInvalidRegistrationError(msg)

        resolved_provides = (
            self._return_type_extractor.extract(factory) if _is_infer(provides) else provides
        )
        provides_key, component_key = self._registration_key(
            resolved_provides,
            component,
            method_name="add_factory",
        )
        return self._register(
            ProviderSpec(
                provides=provides_key,
                component=component_key,
                factory=factory,
                dependencies=self._dependencies_extractor.extract(factory),
                lifetime=self._resolve_lifetime(lifetime),
            ),
        )

    def is_registered(self, dependency: Any, *, component: object | None = None) -> bool:
        """Return whether a lookup for ``dependency`` would find an explicit registration.

        The untagged fallback applies, autoregistration does not.
        """
        provides, component_key = self._lookup_key(dependency, component)
        return self._find_spec(provides, component_key) is not None

    # endregion Registration Methods

    # region Resolution Methods
    @overload
    def resolve(self, dependency: type[T], *, component: object | None = None) -> T: ...

    @overload
    def resolve(self, dependency: Any, *, component: object | None = None) -> Any: ...

    def resolve(self, dependency: Any, *, component: object | None = None) -> Any:
        """Resolve a dependency, building it and its dependencies as needed.

        Args:
            dependency: Dependency key, optionally an
                ``Annotated[T, Component(...)]`` token.
            component: Optional component (tag); overrides a component carried
                by ``dependency``.

        Returns:
            The resolved instance.

        Raises:
            SceneWireDependencyNotRegisteredError: If nothing matches and the
                key is not eligible for autoregistration.
            SceneWireNotInstantiableError: If autoregistration is attempted for
                an abstract class, protocol, or builtin type.
            SceneWireResolutionError: If a nested dependency, a provider or a
                dependency filler fails.

        Examples:
            .. code-block:: python

                repository = container.resolve(UserRepository)
                replica = container.resolve(Database, component="replica")

        """
        provides, component_key = self._lookup_key(dependency, component)
        with resolution_frame(self) as frame:
            return self._resolve_key(frame, provides, component_key)

    def resolve_dependencies_of(
        self,
        instance: T,
        *,
        provides: Any | Literal["infer"] = "infer",
        component: object | None = None,
    ) -> T:
        """Resolve dependencies of an instance created outside the container.

        Does the same as ``resolve`` but, instead of building a new object, uses
        the passed instance as the resolved one: ``Injected[...]`` attributes are
        set and dependency fillers of the matching registration run on it.

        Args:
            instance: The object whose dependencies should be resolved.
            provides: Dependency key the instance is resolved as. ``"infer"``
                uses ``type(instance)``; pass a protocol or base class to use the
                registration made for that interface.
            component: Optional component (tag) used when the type was
                registered.

        Returns:
            The same ``instance``.

        Raises:
            SceneWireDependencyNotRegisteredError: If the container has no
                registration for the key, neither tagged nor untagged.
            SceneWireResolutionError: If an injected attribute or a dependency
                filler fails.

        Examples:
            .. code-block:: python

                container.add_concrete(LoginScreen, component="login").resolve_dependencies(
                    lambda container, screen: setattr(screen, "auth", container.resolve(Auth)),
                )

                screen = LoginScreen()
                container.resolve_dependencies_of(screen, component="login")

        """
        target = type(instance) if _is_infer(provides) else provides
        provides_key, component_key = self._lookup_key(target, component)
        spec = self._find_spec(provides_key, component_key)
        if spec is None:
            raise SceneWireDependencyNotRegisteredError(provides_key, component_key)

        with self._guard(spec), resolution_frame(self) as frame:
            self._enter(frame, spec)
            try:
                self._complete(frame, spec, instance, cache=False)
            finally:
                frame.stack.pop()
        return instance

    # endregion Resolution Methods

    def _register(self, spec: ProviderSpec) -> Registration:
        with self._lock:
            replaced = spec.key in self._specs
            self._specs[spec.key] = spec
            self._singletons.pop(spec.key, None)
        logger.debug(
            "%s %r (component=%r, lifetime=%s) in %r",
            "Replaced" if replaced else "Registered",
            spec.provides,
            spec.component,
            spec.lifetime.value,
            self,
        )
        return Registration(spec)

    def _resolve_lifetime(self, lifetime: Lifetime | Literal["from_container"]) -> Lifetime:
        if isinstance(lifetime, Lifetime):
            return lifetime
        if lifetime == "from_container":
            return self._default_lifetime
        msg = f"Unknown lifetime {lifetime!r}"
        raise SceneWireInvalidRegistrationError(msg)

    def _registration_key(
        self,
        provides: Any,
        component: object | None,
        *,
        method_name: str,
    ) -> RegistrationKey:
        if provides is None:
            msg = f"{method_name}() parameter 'provides' must not be None; use 'infer'."
            raise SceneWireInvalidRegistrationError(msg)
        inner, annotated_component = split_component(provides)
        explicit_component = normalize_component(component)
        if (
            annotated_component is not None
            and explicit_component is not None
            and annotated_component != explicit_component
        ):
            msg = (
                f"{method_name}() got component {explicit_component!r} for a key already "
                f"annotated with component {annotated_component!r}"
            )
            raise SceneWireInvalidRegistrationError(msg)
        if explicit_component is not None:
            return inner, explicit_component
        return inner, annotated_component

    def _lookup_key(self, dependency: Any, component: object | None) -> RegistrationKey:
        inner, annotated_component = split_component(dependency)
        explicit_component = normalize_component(component)
        if explicit_component is not None:
            return inner, explicit_component
        return inner, annotated_component

    def _find_spec(self, provides: Any, component: object | None) -> ProviderSpec | None:
        with self._lock:
            spec = self._specs.get((provides, component))
            if spec is None and component is not None:
                spec = self._specs.get((provides, None))
        return spec

    def _autoregister(self, provides: Any, component: object | None) -> ProviderSpec:
        if not self._autoregister_concrete_types or component is not None:
            raise SceneWireDependencyNotRegisteredError(provides, component)
        reason = not_instantiable_reason(provides)
        if reason is not None:
            raise SceneWireNotInstantiableError(provides, reason)
        try:
            dependencies = self._dependencies_extractor.extract(provides)
        except SceneWireProviderDependencyInferenceError as error:
            raise SceneWireNotInstantiableError(provides, str(error)) from error

        spec = ProviderSpec(
            provides=provides,
            concrete_type=provides,
            dependencies=dependencies,
            lifetime=self._default_lifetime,
        )
        with self._lock:
            spec = self._specs.setdefault(spec.key, spec)
        logger.debug("Autoregistered %r in %r", provides, self)
        return spec

    def _guard(self, spec: ProviderSpec) -> AbstractContextManager[Any]:
        if spec.lifetime is Lifetime.SINGLETON:
            return self._lock
        return nullcontext()

    def _resolve_key(self, frame: ResolutionFrame, provides: Any, component: object | None) -> Any:
        spec = self._find_spec(provides, component)
        if spec is None:
            spec = self._autoregister(provides, component)
        if spec.has_instance:
            return spec.instance

        with self._guard(spec):
            cached = self._cached(frame, spec)
            if cached is not _MISSING:
                return cached
            self._enter(frame, spec)
            try:
                instance = self._build(frame, spec)
                self._complete(frame, spec, instance)
            finally:
                frame.stack.pop()
        return instance

    def _enter(self, frame: ResolutionFrame, spec: ProviderSpec) -> None:
        if spec.key in frame.stack:
            start = frame.stack.index(spec.key)
            raise SceneWireCircularDependencyError([*frame.stack[start:], spec.key])
        frame.stack.append(spec.key)

    def _cached(self, frame: ResolutionFrame, spec: ProviderSpec) -> Any:
        if spec.lifetime is Lifetime.TRANSIENT:
            return _MISSING
        cached = frame.graph.get(spec.key, _MISSING)
        if cached is _MISSING and spec.lifetime is Lifetime.SINGLETON:
            cached = self._singletons.get(spec.key, _MISSING)
        return cached

    def _build(self, frame: ResolutionFrame, spec: ProviderSpec) -> Any:
        kwargs: dict[str, Any] = {}
        for dependency in spec.dependencies:
            try:
                kwargs[dependency.name] = self._resolve_key(
                    frame,
                    dependency.provides,
                    dependency.component,
                )
            except (SceneWireDependencyNotRegisteredError, SceneWireNotInstantiableError) as error:
                if dependency.has_default:
                    continue
                reason = f"parameter {dependency.name!r}: {error}"
                raise SceneWireResolutionError(spec.provides, spec.component, reason) from error

        try:
            return spec.create(**kwargs)
        except SceneWireError:
            raise
        except Exception as error:
            reason = f"provider raised {type(error).__name__}: {error}"
            raise SceneWireResolutionError(spec.provides, spec.component, reason) from error

    def _complete(
        self,
        frame: ResolutionFrame,
        spec: ProviderSpec,
        instance: Any,
        *,
        cache: bool = True,
    ) -> None:
        # instances built elsewhere are visible to this call only, never cached as singletons
        if not cache:
            if spec.lifetime is not Lifetime.TRANSIENT:
                frame.graph[spec.key] = instance
        elif spec.lifetime is Lifetime.SINGLETON:
            self._singletons[spec.key] = instance
        elif spec.lifetime is Lifetime.OBJECT_GRAPH:
            frame.graph[spec.key] = instance

        try:
            self._inject_attributes(frame, spec, instance)
            self._run_fillers(spec, instance)
        except Exception:
            if cache:
                self._singletons.pop(spec.key, None)
            frame.graph.pop(spec.key, None)
            raise

    def _inject_attributes(self, frame: ResolutionFrame, spec: ProviderSpec, instance: Any) -> None:
        for attribute in self._injected_attributes_extractor.extract(type(instance)):
            try:
                value = self._resolve_key(frame, attribute.provides, attribute.component)
            except (SceneWireDependencyNotRegisteredError, SceneWireNotInstantiableError) as error:
                reason = f"attribute {attribute.name!r}: {error}"
                raise SceneWireResolutionError(spec.provides, spec.component, reason) from error
            setattr(instance, attribute.name, value)

    def _run_fillers(self, spec: ProviderSpec, instance: Any) -> None:
        for filler in list(spec.fillers):
            try:
                filler(self, instance)
            except SceneWireDependencyNotRegisteredError as error:
                reason = f"dependency filler {filler!r}: {error}"
                raise SceneWireResolutionError(spec.provides, spec.component, reason) from error
            except SceneWireError:
                raise
            except Exception as error:
                reason = f"dependency filler {filler!r} raised {type(error).__name__}: {error}"
                raise SceneWireResolutionError(spec.provides, spec.component, reason) from error


__all__ = ["Container"]
