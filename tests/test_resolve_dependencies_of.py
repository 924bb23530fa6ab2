"""Resolving objects built outside the container, the way scene loaders build them."""

from typing import Any, Protocol

import pytest

from scenewire import Container, Injected, Lifetime
from scenewire.exceptions import (
    SceneWireCircularDependencyError,
    SceneWireDependencyNotRegisteredError,
    SceneWireResolutionError,
)


class AuthService:
    pass


class Screen(Protocol):
    title: str


class LoginScreen:
    auth: Injected[AuthService]

    def __init__(self) -> None:
        self.title = "login"
        self.delegate: Any = None


class LoginDelegate:
    def __init__(self) -> None:
        self.screen: Any = None


def test_returns_same_instance_without_calling_factory(container: Container) -> None:
    factory_calls: list[str] = []

    def build_screen() -> LoginScreen:
        factory_calls.append("called")
        return LoginScreen()

    container.add_factory(build_screen)
    screen = LoginScreen()

    assert container.resolve_dependencies_of(screen) is screen
    assert factory_calls == []


def test_fills_injected_attributes(container: Container) -> None:
    container.add_concrete(LoginScreen)
    screen = LoginScreen()

    container.resolve_dependencies_of(screen)

    assert isinstance(screen.auth, AuthService)


def test_runs_fillers_with_instance(container: Container) -> None:
    container.add_concrete(LoginScreen, component="login").resolve_dependencies(
        lambda resolver, screen: setattr(screen, "title", "Sign in"),
    )
    screen = LoginScreen()

    container.resolve_dependencies_of(screen, component="login")

    assert screen.title == "Sign in"


def test_resolves_as_declared_interface(container: Container) -> None:
    container.add_concrete(LoginScreen, provides=Screen, component="login").resolve_dependencies(
        lambda resolver, screen: setattr(screen, "title", "via protocol"),
    )
    screen = LoginScreen()

    with pytest.raises(SceneWireDependencyNotRegisteredError):
        container.resolve_dependencies_of(screen, component="login")

    container.resolve_dependencies_of(screen, provides=Screen, component="login")
    assert screen.title == "via protocol"


def test_back_reference_points_at_passed_instance(container: Container) -> None:
    container.add_concrete(LoginDelegate, lifetime=Lifetime.TRANSIENT).resolve_dependencies(
        lambda resolver, delegate: setattr(
            delegate,
            "screen",
            resolver.resolve(LoginScreen, component="login"),
        ),
    )
    container.add_concrete(LoginScreen, component="login").resolve_dependencies(
        lambda resolver, screen: setattr(screen, "delegate", resolver.resolve(LoginDelegate)),
    )
    screen = LoginScreen()

    container.resolve_dependencies_of(screen, component="login")

    assert screen.delegate.screen is screen


def test_tagged_lookup_falls_back_to_untagged_registration(strict_container: Container) -> None:
    auth = AuthService()
    strict_container.add_instance(auth)
    strict_container.add_concrete(LoginScreen)

    screen = strict_container.resolve_dependencies_of(LoginScreen(), component="unknown")

    assert screen.auth is auth


def test_untagged_lookup_ignores_tagged_registration(container: Container) -> None:
    container.add_concrete(LoginScreen, component="login")

    with pytest.raises(SceneWireDependencyNotRegisteredError):
        container.resolve_dependencies_of(LoginScreen())


def test_never_autoregisters(container: Container) -> None:
    with pytest.raises(SceneWireDependencyNotRegisteredError):
        container.resolve_dependencies_of(LoginScreen())

    assert not container.is_registered(LoginScreen)


def test_failing_filler_raises_resolution_error(container: Container) -> None:
    def failing(resolver: Container, screen: LoginScreen) -> None:
        msg = "no network"
        raise OSError(msg)

    container.add_concrete(LoginScreen).resolve_dependencies(failing)

    with pytest.raises(SceneWireResolutionError, match="no network"):
        container.resolve_dependencies_of(LoginScreen())


def test_filler_missing_dependency_raises_resolution_error(strict_container: Container) -> None:
    class Missing:
        pass

    strict_container.add_instance(AuthService())
    strict_container.add_concrete(LoginScreen).resolve_dependencies(
        lambda resolver, screen: resolver.resolve(Missing),
    )

    with pytest.raises(SceneWireResolutionError) as exc_info:
        strict_container.resolve_dependencies_of(LoginScreen())

    assert isinstance(exc_info.value.__cause__, SceneWireDependencyNotRegisteredError)


def test_injected_attribute_without_registration_raises_resolution_error(
    strict_container: Container,
) -> None:
    strict_container.add_concrete(LoginScreen)

    with pytest.raises(SceneWireResolutionError, match="'auth'"):
        strict_container.resolve_dependencies_of(LoginScreen())


def test_instance_registration_is_treated_as_registered(container: Container) -> None:
    existing = LoginScreen()
    container.add_instance(existing, component="login")
    other = LoginScreen()

    assert container.resolve_dependencies_of(other, component="login") is other
    assert isinstance(other.auth, AuthService)


def test_object_graph_cache_is_not_shared_between_calls(container: Container) -> None:
    container.add_concrete(LoginScreen)
    first = LoginScreen()
    second = LoginScreen()

    container.resolve_dependencies_of(first)
    container.resolve_dependencies_of(second)

    assert container.resolve(LoginScreen) is not first


def test_filler_resolving_its_own_key_in_transient_registration_is_a_cycle(
    container: Container,
) -> None:
    container.add_concrete(LoginDelegate, lifetime=Lifetime.TRANSIENT).resolve_dependencies(
        lambda resolver, delegate: resolver.resolve(LoginDelegate),
    )

    with pytest.raises(SceneWireCircularDependencyError):
        container.resolve_dependencies_of(LoginDelegate())


def test_passed_instance_does_not_replace_singleton(container: Container) -> None:
    container.add_concrete(AuthService, lifetime=Lifetime.SINGLETON)
    singleton = container.resolve(AuthService)
    built_elsewhere = AuthService()

    assert container.resolve_dependencies_of(built_elsewhere) is built_elsewhere

    assert container.resolve(AuthService) is singleton


def test_singleton_back_reference_reaches_passed_instance(container: Container) -> None:
    container.add_concrete(LoginDelegate, lifetime=Lifetime.TRANSIENT).resolve_dependencies(
        lambda resolver, delegate: setattr(delegate, "screen", resolver.resolve(LoginScreen)),
    )
    container.add_concrete(LoginScreen, lifetime=Lifetime.SINGLETON).resolve_dependencies(
        lambda resolver, screen: setattr(screen, "delegate", resolver.resolve(LoginDelegate)),
    )
    screen = LoginScreen()

    container.resolve_dependencies_of(screen)

    assert screen.delegate.screen is screen
    assert container.resolve(LoginScreen) is not screen
