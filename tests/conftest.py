"""Shared pytest fixtures for scenewire tests."""

from collections.abc import Iterator

import pytest

from scenewire.container import Container
from scenewire.registry import ContainerRegistry
from scenewire.settings import FailureLogging, SceneWireSettings, get_settings
from scenewire.tags import TagTable


@pytest.fixture()
def container() -> Container:
    """Default container with auto-registration enabled."""
    return Container(name="default")


@pytest.fixture()
def strict_container() -> Container:
    """Container with autoregistration disabled."""
    return Container(autoregister_concrete_types=False, name="strict")


@pytest.fixture()
def registry() -> ContainerRegistry:
    """Standalone registry logging only the last failure."""
    return ContainerRegistry(settings=SceneWireSettings(failure_logging=FailureLogging.LAST))


@pytest.fixture()
def tags() -> TagTable:
    return TagTable()


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
