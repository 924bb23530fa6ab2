"""Ordered containers: the first container that resolves an object wins.

A feature module registers its own screens in a dedicated container placed in
front of the application container. Objects the feature container does not
know about fall through to the next container in the registry.
"""

from __future__ import annotations

from scenewire import Container, ContainerRegistry, SceneInstantiatable


class Analytics:
    def __init__(self, backend: str) -> None:
        self.backend = backend


class ProfileScreen(SceneInstantiatable):
    analytics: Analytics


class SettingsScreen(SceneInstantiatable):
    analytics: Analytics


def main() -> None:
    app = Container(autoregister_concrete_types=False, name="app")
    app.add_concrete(SettingsScreen, component="settings").resolve_dependencies(
        lambda container, screen: setattr(screen, "analytics", Analytics("app")),
    )

    feature = Container(autoregister_concrete_types=False, name="profile")
    feature.add_concrete(ProfileScreen, component="profile").resolve_dependencies(
        lambda container, screen: setattr(screen, "analytics", Analytics("profile")),
    )

    registry = ContainerRegistry([feature, app])

    profile = ProfileScreen()
    resolved_by = registry.resolve_instance(profile, "profile")
    print(f"profile: {resolved_by.name} {profile.analytics.backend}")  # => profile: profile profile

    settings = SettingsScreen()
    resolved_by = registry.resolve_instance(settings, "settings")
    print(f"settings: {resolved_by.name} {settings.analytics.backend}")  # => settings: app app


if __name__ == "__main__":
    main()
