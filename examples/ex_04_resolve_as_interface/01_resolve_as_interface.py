"""Resolve a scene object as one of the interfaces it implements.

Override ``on_resolve`` to pick the registration made for a protocol instead
of the concrete class, and to finish setup once dependencies are in place.
"""

from __future__ import annotations

from typing import Protocol

from scenewire import (
    Container,
    ContainerRegistry,
    DependencyResolver,
    SceneInstantiatable,
    Storyboard,
)


class Clock:
    def now(self) -> str:
        return "12:00"


class Screen(Protocol):
    clock: Clock


class DashboardScreen(SceneInstantiatable):
    def __init__(self) -> None:
        self.clock: Clock | None = None
        self.headline = ""

    def on_resolve(self, container: DependencyResolver, tag: str | None) -> None:
        container.resolve_dependencies_of(self, provides=Screen, component=tag)
        self.headline = f"It is {self.clock.now() if self.clock else 'unknown'}"


def main() -> None:
    container = Container(autoregister_concrete_types=False)
    container.add_instance(Clock())
    container.add_concrete(DashboardScreen, provides=Screen).resolve_dependencies(
        lambda resolver, screen: setattr(screen, "clock", resolver.resolve(Clock)),
    )

    storyboard = Storyboard.from_mapping(
        {"name": "Main", "nodes": [{"type": "Dashboard", "identifier": "dashboard", "tag": "home"}]},
        types={"Dashboard": DashboardScreen},
        registry=ContainerRegistry([container]),
    )

    dashboard = storyboard.instantiate("dashboard")
    print(dashboard.headline)  # => It is 12:00


if __name__ == "__main__":
    main()
