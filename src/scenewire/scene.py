from __future__ import annotations

import importlib
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from scenewire.exceptions import SceneWireSceneDefinitionError, SceneWireSceneNotFoundError
from scenewire.lifecycle import did_instantiate
from scenewire.registry import ContainerRegistry
from scenewire.settings import SceneWireSettings, get_settings
from scenewire.tags import SceneTag

logger = logging.getLogger(__name__)

InstantiationListener = Callable[[Any, str | None], None]
"""A callable ``listener(instance, tag)`` run after each node is instantiated."""


class NodeDefinition(BaseModel):
    """One object of a scene document."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: str
    """Type alias registered on the storyboard, or an import path (``pkg.mod:Name`` or ``pkg.mod.Name``)."""
    identifier: str | None = None
    """Name used with ``Storyboard.instantiate``; only meaningful on top-level nodes."""
    tag: str | None = None
    """Scene tag selecting the container registration used to resolve the object."""
    attributes: dict[str, Any] = Field(default_factory=dict)
    """Attributes set on the object right after construction."""
    children: list[NodeDefinition] = Field(default_factory=list)
    """Nested objects, attached with ``SceneNode.add_child``."""


class SceneDefinition(BaseModel):
    """A scene document: named top-level nodes that can be instantiated."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    initial: str | None = None
    """Identifier of the node built by ``Storyboard.instantiate_initial``."""
    nodes: list[NodeDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_identifiers(self) -> SceneDefinition:
        seen: set[str] = set()
        for node in self.nodes:
            if node.identifier is None:
                continue
            if node.identifier in seen:
                msg = f"duplicate node identifier {node.identifier!r}"
                raise ValueError(msg)
            seen.add(node.identifier)
        if self.initial is not None and self.initial not in seen:
            msg = f"initial node {self.initial!r} is not a top-level identifier"
            raise ValueError(msg)
        return self


class SceneNode:
    """Base class for objects built from scene documents.

    Subclasses must be constructible without arguments. Dependencies arrive
    after construction: either through ``SceneInstantiatable.on_resolve`` or
    ``Injected[...]`` attributes. ``awake_from_scene`` is the first callback
    where both children and dependencies are in place.
    """

    scene_tag = SceneTag()

    def __init__(self) -> None:
        self.parent: SceneNode | None = None
        self.children: list[Any] = []

    def add_child(self, child: Any) -> None:
        self.children.append(child)
        if isinstance(child, SceneNode):
            child.parent = self

    def awake_from_scene(self) -> None:
        """Called once the whole tree of the scene has been built and resolved."""


class Storyboard:
    """Build object trees from a scene document.

    Every ``instantiate`` call creates new objects. For each node, in order:
    the object is constructed without arguments, its attributes are set, its
    children are built and attached, the lifecycle event fires (recording the
    tag and resolving dependencies of ``SceneInstantiatable`` objects through
    the container registry), and instantiation listeners run. When the whole
    tree exists, ``awake_from_scene`` is called on every ``SceneNode`` in
    creation order.

    Examples:
        .. code-block:: python

            storyboard = Storyboard.from_mapping(
                {
                    "name": "Main",
                    "initial": "login",
                    "nodes": [
                        {"type": "app.screens:LoginScreen", "identifier": "login", "tag": "login"},
                    ],
                },
            )
            screen = storyboard.instantiate_initial()

    """

    def __init__(
        self,
        definition: SceneDefinition,
        *,
        types: Mapping[str, type[Any]] | None = None,
        registry: ContainerRegistry | None = None,
    ) -> None:
        """Create a storyboard.

        Args:
            definition: The validated scene document.
            types: Aliases usable as ``type`` in node definitions, checked
                before import paths.
            registry: Container registry used for resolution. Defaults to the
                process-wide registry at instantiation time.

        """
        self.definition = definition
        self._types: dict[str, type[Any]] = dict(types or {})
        self._registry = registry
        self._listeners: list[InstantiationListener] = []
        self._nodes = {node.identifier: node for node in definition.nodes if node.identifier is not None}

    def __repr__(self) -> str:
        return f"Storyboard(name={self.name!r}, identifiers={self.identifiers!r})"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **options: Any) -> Storyboard:
        """Create a storyboard from a plain mapping.

        Raises:
            SceneWireSceneDefinitionError: If the mapping is not a valid scene.

        """
        try:
            definition = SceneDefinition.model_validate(data)
        except ValidationError as error:
            msg = f"Invalid scene definition: {error}"
            raise SceneWireSceneDefinitionError(msg) from error
        return cls(definition, **options)

    @classmethod
    def from_json(cls, text: str | bytes, **options: Any) -> Storyboard:
        """Create a storyboard from a JSON document.

        Raises:
            SceneWireSceneDefinitionError: If the document is not a valid scene.

        """
        try:
            definition = SceneDefinition.model_validate_json(text)
        except ValidationError as error:
            msg = f"Invalid scene definition: {error}"
            raise SceneWireSceneDefinitionError(msg) from error
        return cls(definition, **options)

    @classmethod
    def from_file(cls, path: str | Path, **options: Any) -> Storyboard:
        """Create a storyboard from a JSON file.

        Raises:
            SceneWireSceneNotFoundError: If the file does not exist.
            SceneWireSceneDefinitionError: If the file is not a valid scene.

        """
        scene_path = Path(path)
        try:
            text = scene_path.read_text(encoding="utf-8")
        except FileNotFoundError as error:
            msg = f"Scene file {scene_path} does not exist"
            raise SceneWireSceneNotFoundError(msg) from error
        logger.debug("Loading scene from %s", scene_path)
        return cls.from_json(text, **options)

    @classmethod
    def named(
        cls,
        name: str,
        *,
        settings: SceneWireSettings | None = None,
        **options: Any,
    ) -> Storyboard:
        """Load the scene ``name`` from the configured scene directories.

        The first ``<dir>/<name><scene_suffix>`` that exists is used, with
        directories taken from ``SceneWireSettings.scene_paths``.

        Raises:
            SceneWireSceneNotFoundError: If no directory contains the scene.

        """
        active_settings = settings if settings is not None else get_settings()
        file_name = f"{name}{active_settings.scene_suffix}"
        for directory in active_settings.scene_paths:
            candidate = directory / file_name
            if candidate.is_file():
                return cls.from_file(candidate, **options)
        searched = ", ".join(str(directory) for directory in active_settings.scene_paths) or "<none>"
        msg = f"Scene {name!r} not found; searched {searched}"
        raise SceneWireSceneNotFoundError(msg)

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def identifiers(self) -> tuple[str, ...]:
        return tuple(self._nodes)

    def register_type(self, alias: str, node_type: type[Any]) -> None:
        self._types[alias] = node_type

    def add_instantiation_listener(self, listener: InstantiationListener) -> None:
        """Run ``listener(instance, tag)`` after the lifecycle event of every node."""
        self._listeners.append(listener)

    def instantiate(self, identifier: str) -> Any:
        """Build a new object tree for the top-level node ``identifier``.

        Raises:
            SceneWireSceneNotFoundError: If no top-level node has that identifier.
            SceneWireSceneDefinitionError: If a node cannot be materialised.

        """
        node = self._nodes.get(identifier)
        if node is None:
            msg = f"Scene {self.name!r} has no node {identifier!r}"
            raise SceneWireSceneNotFoundError(msg)

        created: list[Any] = []
        root = self._materialize(node, created)
        for instance in created:
            if isinstance(instance, SceneNode):
                instance.awake_from_scene()
        return root

    def instantiate_initial(self) -> Any:
        """Build the node named by the scene's ``initial`` identifier.

        Raises:
            SceneWireSceneNotFoundError: If the scene declares no initial node.

        """
        if self.definition.initial is None:
            msg = f"Scene {self.name!r} has no initial node"
            raise SceneWireSceneNotFoundError(msg)
        return self.instantiate(self.definition.initial)

    def _materialize(self, node: NodeDefinition, created: list[Any]) -> Any:
        node_type = self._load_type(node.type)
        try:
            instance = node_type()
        except Exception as error:
            msg = f"Cannot construct {node.type!r}: {error}"
            raise SceneWireSceneDefinitionError(msg) from error

        for name, value in node.attributes.items():
            try:
                setattr(instance, name, value)
            except AttributeError as error:
                msg = f"Cannot set attribute {name!r} on {node.type!r}: {error}"
                raise SceneWireSceneDefinitionError(msg) from error

        if node.children and not isinstance(instance, SceneNode):
            msg = f"{node.type!r} declares children but is not a SceneNode"
            raise SceneWireSceneDefinitionError(msg)
        for child_node in node.children:
            instance.add_child(self._materialize(child_node, created))

        did_instantiate(instance, node.tag, registry=self._registry)
        for listener in self._listeners:
            listener(instance, node.tag)
        created.append(instance)
        return instance

    def _load_type(self, path: str) -> type[Any]:
        node_type = self._types.get(path)
        if node_type is not None:
            return node_type

        if ":" in path:
            module_name, _, qualname = path.partition(":")
        else:
            module_name, _, qualname = path.rpartition(".")
        if not module_name or not qualname:
            msg = f"Unknown node type {path!r}; register an alias or use 'module:Name'"
            raise SceneWireSceneDefinitionError(msg)

        try:
            target: Any = importlib.import_module(module_name)
        except ImportError as error:
            msg = f"Cannot import module {module_name!r} for node type {path!r}"
            raise SceneWireSceneDefinitionError(msg) from error
        for attribute in qualname.split("."):
            try:
                target = getattr(target, attribute)
            except AttributeError as error:
                msg = f"Module {module_name!r} has no {qualname!r}"
                raise SceneWireSceneDefinitionError(msg) from error
        if not isinstance(target, type):
            msg = f"Node type {path!r} is not a class"
            raise SceneWireSceneDefinitionError(msg)

        self._types[path] = target
        return target


__all__ = [
    "InstantiationListener",
    "NodeDefinition",
    "SceneDefinition",
    "SceneNode",
    "Storyboard",
]
