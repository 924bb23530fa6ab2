from __future__ import annotations

from collections.abc import Iterator

import pytest

from scenewire.container import Container
from scenewire.registry import ContainerRegistry, set_registry


@pytest.fixture()
def scenewire_registry() -> Iterator[ContainerRegistry]:
    """Install an empty process-wide container registry for one test.

    The previous registry is restored when the test finishes, so scenes
    instantiated in the test only see containers registered in it.

    Yields:
        The registry installed for the test.

    """
    registry = ContainerRegistry()
    previous = set_registry(registry)
    try:
        yield registry
    finally:
        set_registry(previous)


@pytest.fixture()
def scenewire_container(scenewire_registry: ContainerRegistry) -> Container:
    """Create a per-test container registered in ``scenewire_registry``.

    The fixture keeps the container alive for the whole test, which matters
    because the registry only holds weak references.

    Returns:
        A new ``Container`` instance.

    """
    container = Container(name="scenewire_container")
    scenewire_registry.append(container)
    return container
