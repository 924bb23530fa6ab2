from scenewire.container import Container
from scenewire.exceptions import (
    SceneWireCircularDependencyError,
    SceneWireDependencyNotRegisteredError,
    SceneWireError,
    SceneWireInvalidRegistrationError,
    SceneWireNotInstantiableError,
    SceneWireProviderDependencyInferenceError,
    SceneWireResolutionError,
    SceneWireSceneDefinitionError,
    SceneWireSceneNotFoundError,
    SceneWireTagTargetError,
)
from scenewire.instantiatable import DependencyResolver, SceneInstantiatable
from scenewire.lifecycle import did_instantiate
from scenewire.markers import Component, Injected
from scenewire.providers import Lifetime, Registration
from scenewire.registry import ContainerRegistry, get_registry, register_container, set_registry
from scenewire.scene import NodeDefinition, SceneDefinition, SceneNode, Storyboard
from scenewire.settings import FailureLogging, SceneWireSettings, get_settings
from scenewire.tags import TagTable, get_tag, scene_tags, set_tag

__all__ = [
    "Component",
    "Container",
    "ContainerRegistry",
    "DependencyResolver",
    "FailureLogging",
    "Injected",
    "Lifetime",
    "NodeDefinition",
    "Registration",
    "SceneDefinition",
    "SceneInstantiatable",
    "SceneNode",
    "SceneWireCircularDependencyError",
    "SceneWireDependencyNotRegisteredError",
    "SceneWireError",
    "SceneWireInvalidRegistrationError",
    "SceneWireNotInstantiableError",
    "SceneWireProviderDependencyInferenceError",
    "SceneWireResolutionError",
    "SceneWireSceneDefinitionError",
    "SceneWireSceneNotFoundError",
    "SceneWireSettings",
    "SceneWireTagTargetError",
    "Storyboard",
    "TagTable",
    "did_instantiate",
    "get_registry",
    "get_settings",
    "get_tag",
    "register_container",
    "scene_tags",
    "set_registry",
    "set_tag",
]
