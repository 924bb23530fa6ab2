"""Quickstart: resolve dependencies of objects built from a scene document.

The storyboard builds ``LoginScreen`` itself. Because the class opts in with
``SceneInstantiatable``, the container registration tagged ``"login"`` runs on
the already-built object, and ``awake_from_scene`` sees the result.
"""

from __future__ import annotations

from scenewire import (
    Container,
    ContainerRegistry,
    Injected,
    SceneInstantiatable,
    SceneNode,
    Storyboard,
)


class AuthService:
    def current_user(self) -> str:
        return "ada"


class LoginScreen(SceneNode, SceneInstantiatable):
    auth: Injected[AuthService]

    def __init__(self) -> None:
        super().__init__()
        self.title = ""

    def awake_from_scene(self) -> None:
        print(f"{self.title}: {self.auth.current_user()}")  # => Welcome back: ada


SCENE = {
    "name": "Main",
    "initial": "login",
    "nodes": [
        {
            "type": "LoginScreen",
            "identifier": "login",
            "tag": "login",
            "attributes": {"title": "Welcome back"},
        },
    ],
}


def main() -> None:
    container = Container(autoregister_concrete_types=False)
    container.add_instance(AuthService())
    container.add_concrete(LoginScreen, component="login")

    registry = ContainerRegistry([container])
    storyboard = Storyboard.from_mapping(SCENE, types={"LoginScreen": LoginScreen}, registry=registry)

    screen = storyboard.instantiate_initial()
    print(f"tag={screen.scene_tag}")  # => tag=login


if __name__ == "__main__":
    main()
