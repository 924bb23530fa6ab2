from abc import ABC, abstractmethod
from typing import Annotated, Protocol

import pytest

from scenewire import Component, Container, Injected, Lifetime
from scenewire.exceptions import (
    SceneWireCircularDependencyError,
    SceneWireDependencyNotRegisteredError,
    SceneWireInvalidRegistrationError,
    SceneWireNotInstantiableError,
    SceneWireProviderDependencyInferenceError,
    SceneWireResolutionError,
)


class ServiceA:
    pass


class ServiceB:
    def __init__(self, service_a: ServiceA) -> None:
        self.service_a = service_a


class Database:
    def __init__(self, url: str = "sqlite://") -> None:
        self.url = url


class Repository(ABC):
    @abstractmethod
    def get(self) -> str: ...


class MemoryRepository(Repository):
    def get(self) -> str:
        return "memory"


class Clock(Protocol):
    def now(self) -> float: ...


class Screen:
    service: Injected[ServiceA]
    replica: Injected[Annotated[Database, Component("replica")]]


class NeedsUnannotated:
    def __init__(self, value) -> None:  # noqa: ANN001
        self.value = value


class Chicken:
    def __init__(self, egg: "Egg") -> None:
        self.egg = egg


class Egg:
    def __init__(self, chicken: Chicken) -> None:
        self.chicken = chicken


def test_auto_registers_class(container: Container) -> None:
    instance = container.resolve(ServiceA)
    assert isinstance(instance, ServiceA)


def test_auto_registers_class_with_dependencies(container: Container) -> None:
    instance = container.resolve(ServiceB)
    assert isinstance(instance.service_a, ServiceA)


def test_strict_container_does_not_autoregister(strict_container: Container) -> None:
    with pytest.raises(SceneWireDependencyNotRegisteredError):
        strict_container.resolve(ServiceA)


def test_transient_lifetime_creates_new_instances(container: Container) -> None:
    container.add_concrete(ServiceA, lifetime=Lifetime.TRANSIENT)

    assert container.resolve(ServiceA) is not container.resolve(ServiceA)


def test_singleton_lifetime_shares_instance(container: Container) -> None:
    container.add_concrete(ServiceA, lifetime=Lifetime.SINGLETON)

    assert container.resolve(ServiceA) is container.resolve(ServiceA)


def test_object_graph_lifetime_shares_within_one_resolution(container: Container) -> None:
    class Pair:
        def __init__(self, first: ServiceA, second: ServiceA) -> None:
            self.first = first
            self.second = second

    container.add_concrete(ServiceA, lifetime=Lifetime.OBJECT_GRAPH)
    container.add_concrete(Pair, lifetime=Lifetime.TRANSIENT)

    pair = container.resolve(Pair)
    other = container.resolve(Pair)

    assert pair.first is pair.second
    assert pair.first is not other.first


def test_add_instance_returns_registered_instance(container: Container) -> None:
    database = Database("postgres://primary")
    container.add_instance(database)

    assert container.resolve(Database) is database


def test_add_concrete_binds_abstract_key(container: Container) -> None:
    container.add_concrete(MemoryRepository, provides=Repository)

    assert container.resolve(Repository).get() == "memory"


def test_add_factory_infers_provides_from_return_annotation(container: Container) -> None:
    def build_database(service: ServiceA) -> Database:
        assert isinstance(service, ServiceA)
        return Database("factory://")

    container.add_factory(build_database)

    assert container.resolve(Database).url == "factory://"


def test_add_factory_without_return_annotation_requires_provides(container: Container) -> None:
    def build():  # noqa: ANN202
        return Database()

    with pytest.raises(SceneWireInvalidRegistrationError):
        container.add_factory(build)

    container.add_factory(build, provides=Database)
    assert isinstance(container.resolve(Database), Database)


def test_parameter_default_used_when_dependency_is_unresolvable(container: Container) -> None:
    assert container.resolve(Database).url == "sqlite://"


def test_component_registrations_are_distinct(container: Container) -> None:
    primary = Database("primary")
    replica = Database("replica")
    container.add_instance(primary, component="primary")
    container.add_instance(replica, provides=Annotated[Database, Component("replica")])

    assert container.resolve(Database, component="primary") is primary
    assert container.resolve(Annotated[Database, Component("replica")]) is replica
    assert container.resolve(Database, component=Component("replica")) is replica


def test_tagged_lookup_falls_back_to_untagged_registration(strict_container: Container) -> None:
    default = Database("default")
    strict_container.add_instance(default)

    assert strict_container.resolve(Database, component="missing") is default


def test_untagged_lookup_never_matches_tagged_registration(strict_container: Container) -> None:
    strict_container.add_instance(Database("tagged"), component="x")

    with pytest.raises(SceneWireDependencyNotRegisteredError):
        strict_container.resolve(Database)


def test_tagged_lookup_is_not_autoregistered(container: Container) -> None:
    with pytest.raises(SceneWireDependencyNotRegisteredError):
        container.resolve(ServiceA, component="x")


def test_conflicting_components_are_rejected(container: Container) -> None:
    with pytest.raises(SceneWireInvalidRegistrationError):
        container.add_instance(
            Database(),
            provides=Annotated[Database, Component("a")],
            component="b",
        )


def test_reregistration_replaces_previous_and_drops_singleton(container: Container) -> None:
    container.add_concrete(ServiceA, lifetime=Lifetime.SINGLETON)
    first = container.resolve(ServiceA)

    container.add_concrete(ServiceA, lifetime=Lifetime.SINGLETON)

    assert container.resolve(ServiceA) is not first


def test_injected_attributes_are_set_on_resolve(container: Container) -> None:
    replica = Database("replica")
    container.add_instance(replica, component="replica")
    container.add_concrete(ServiceA, lifetime=Lifetime.SINGLETON)

    screen = container.resolve(Screen)

    assert screen.service is container.resolve(ServiceA)
    assert screen.replica is replica


def test_dependency_fillers_run_after_construction(container: Container) -> None:
    calls: list[tuple[Container, ServiceB]] = []
    container.add_concrete(ServiceB).resolve_dependencies(
        lambda resolver, instance: calls.append((resolver, instance)),
    )

    instance = container.resolve(ServiceB)

    assert calls == [(container, instance)]


def test_fillers_can_resolve_back_to_object_graph_instance(container: Container) -> None:
    class Owner:
        pass

    class Delegate:
        def __init__(self) -> None:
            self.owner: Owner | None = None

    container.add_concrete(Delegate, lifetime=Lifetime.TRANSIENT).resolve_dependencies(
        lambda resolver, delegate: setattr(delegate, "owner", resolver.resolve(Owner)),
    )
    container.add_concrete(Owner).resolve_dependencies(
        lambda resolver, owner: setattr(owner, "delegate", resolver.resolve(Delegate)),
    )

    owner = container.resolve(Owner)

    assert owner.delegate.owner is owner


def test_abstract_class_is_not_instantiable(container: Container) -> None:
    with pytest.raises(SceneWireNotInstantiableError):
        container.resolve(Repository)


def test_protocol_is_not_instantiable(container: Container) -> None:
    with pytest.raises(SceneWireNotInstantiableError):
        container.resolve(Clock)


def test_builtin_is_not_instantiable(container: Container) -> None:
    with pytest.raises(SceneWireNotInstantiableError):
        container.resolve(int)


def test_add_concrete_rejects_abstract_class(container: Container) -> None:
    with pytest.raises(SceneWireInvalidRegistrationError):
        container.add_concrete(Repository)


def test_add_concrete_requires_annotations(container: Container) -> None:
    with pytest.raises(SceneWireProviderDependencyInferenceError):
        container.add_concrete(NeedsUnannotated)


def test_missing_nested_dependency_raises_resolution_error(strict_container: Container) -> None:
    strict_container.add_concrete(ServiceB)

    with pytest.raises(SceneWireResolutionError) as exc_info:
        strict_container.resolve(ServiceB)

    assert exc_info.value.dependency is ServiceB
    assert isinstance(exc_info.value.__cause__, SceneWireDependencyNotRegisteredError)


def test_failing_factory_is_wrapped(container: Container) -> None:
    def build() -> Database:
        msg = "connection refused"
        raise ConnectionError(msg)

    container.add_factory(build)

    with pytest.raises(SceneWireResolutionError, match="connection refused") as exc_info:
        container.resolve(Database)

    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_constructor_cycle_is_detected(container: Container) -> None:
    with pytest.raises(SceneWireCircularDependencyError) as exc_info:
        container.resolve(Chicken)

    cycle_types = [dependency for dependency, _ in exc_info.value.cycle]
    assert cycle_types[0] is cycle_types[-1]


def test_is_registered_applies_untagged_fallback(strict_container: Container) -> None:
    strict_container.add_concrete(ServiceA)

    assert strict_container.is_registered(ServiceA)
    assert strict_container.is_registered(ServiceA, component="x")
    assert not strict_container.is_registered(ServiceB)


def test_registration_handle_describes_registration(container: Container) -> None:
    registration = container.add_concrete(ServiceA, component="a", lifetime=Lifetime.TRANSIENT)

    assert registration.provides is ServiceA
    assert registration.component == "a"
    assert registration.lifetime is Lifetime.TRANSIENT


def test_filler_must_be_callable(container: Container) -> None:
    registration = container.add_concrete(ServiceA)

    with pytest.raises(SceneWireInvalidRegistrationError):
        registration.resolve_dependencies("not callable")  # type: ignore[arg-type]
