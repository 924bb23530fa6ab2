from __future__ import annotations

import logging
from typing import Any

from scenewire.exceptions import SceneWireTagTargetError
from scenewire.instantiatable import SceneInstantiatable
from scenewire.registry import ContainerRegistry, get_registry
from scenewire.tags import TagTable, scene_tags

logger = logging.getLogger(__name__)


def did_instantiate(
    instance: Any,
    tag: str | None = None,
    *,
    registry: ContainerRegistry | None = None,
    tags: TagTable | None = None,
) -> bool:
    """Handle the moment a loader finished materialising ``instance``.

    Call it once per object, after its constructor ran and its declared
    attributes were applied, and before any later callback the application can
    observe. The tag is recorded in the tag table. The first time the event
    fires for a ``SceneInstantiatable`` instance, its dependencies are resolved
    through the container registry, with or without a tag: an untagged
    registration is a valid target. Later calls for the same instance only
    update the tag.

    Objects that cannot be weakly referenced carry no tag and are not
    tracked: the event is logged, and a ``SceneInstantiatable`` instance is
    still resolved with ``tag``. Errors never propagate to the loader.

    Args:
        instance: The materialised object.
        tag: The scene tag declared for the object, ``None`` when absent.
        registry: Registry to resolve with. Defaults to the process-wide one,
            read at the moment of the call.
        tags: Tag table to record the tag in. Defaults to the process-wide one.

    Returns:
        ``True`` when a container resolved the instance.

    """
    table = tags if tags is not None else scene_tags
    try:
        first_time = table.mark_instantiated(instance, tag)
    except SceneWireTagTargetError as error:
        logger.warning("Cannot record scene tag %r for %r: %s", tag, instance, error)
        first_time = True
    if not first_time:
        logger.debug("%r was already instantiated, tag updated to %r", instance, tag)
        table.set(instance, tag)
        return False

    if not isinstance(instance, SceneInstantiatable):
        return False

    active_registry = registry if registry is not None else get_registry()
    return active_registry.resolve_instance(instance, tag) is not None


__all__ = ["did_instantiate"]
