from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any, NamedTuple, TypeVar, Union, get_args, get_origin

T = TypeVar("T")
_ANNOTATED_MARKER_MIN_ARGS = 2


class Component(NamedTuple):
    """Differentiate multiple providers for the same base type.

    Attach ``Component`` metadata to ``typing.Annotated`` so the container treats
    each annotated key as distinct. The component value is the scene tag: a node
    tagged ``"login"`` in a scene document is resolved against the registration
    added with ``component="login"``.

    Examples:
        .. code-block:: python

            from typing import Annotated, TypeAlias


            class Database: ...


            ReplicaDb: TypeAlias = Annotated[Database, Component("replica")]
            PrimaryDb: TypeAlias = Annotated[Database, Component("primary")]

    """

    value: Any


class InjectedMarker:
    """A marker used to indicate a class attribute should be filled by the container."""

    def __repr__(self) -> str:
        return "InjectedMarker()"


def _build_annotated(params: tuple[object, ...]) -> Any:
    """Return Annotated[...] with a pre-built params tuple."""
    return Annotated[params]  # type: ignore[valid-type]


if TYPE_CHECKING:
    Injected = Union[T, T]  # noqa: UP007,PYI016
    """Mark a class attribute for property injection.

    At runtime ``Injected[T]`` becomes ``Annotated[T, InjectedMarker()]``.
    """

else:

    class Injected:
        """Mark a class attribute for property injection.

        At runtime ``Injected[T]`` resolves to ``Annotated[T, InjectedMarker()]``.
        Every time the container resolves an instance of the class, including
        through ``resolve_dependencies_of``, the attribute is set to the resolved
        dependency.

        Examples:
            .. code-block:: python

                class LoginScreen(SceneNode, SceneInstantiatable):
                    auth: Injected[AuthService]
                    analytics: Injected[Annotated[Tracker, Component("login")]]

        """

        def __class_getitem__(cls, item: T) -> Annotated[T, InjectedMarker]:
            if get_origin(item) is Annotated:
                args = get_args(item)
                inner = args[0]
                metadata = args[1:]
                return _build_annotated((inner, *metadata, InjectedMarker()))
            return _build_annotated((item, InjectedMarker()))


def normalize_component(component: object | None) -> object | None:
    """Return the raw component value for a ``Component`` marker or plain value."""
    if isinstance(component, Component):
        return component.value
    return component


def split_component(dependency: Any) -> tuple[Any, object | None]:
    """Split ``Annotated[T, Component(x)]`` into ``(T, x)``.

    Keys without a ``Component`` marker come back unchanged with a ``None``
    component. Other ``Annotated`` metadata is dropped from the key only when a
    ``Component`` marker is present.
    """
    if get_origin(dependency) is not Annotated:
        return dependency, None
    args = get_args(dependency)
    if len(args) < _ANNOTATED_MARKER_MIN_ARGS:
        return dependency, None
    inner, *metadata = args
    for item in metadata:
        if isinstance(item, Component):
            return inner, item.value
    return dependency, None


def is_injected_annotation(annotation: Any) -> bool:
    """Return whether an annotation carries an ``InjectedMarker``."""
    if get_origin(annotation) is not Annotated:
        return False
    return any(isinstance(item, InjectedMarker) for item in get_args(annotation)[1:])


def strip_injected(annotation: Any) -> Any:
    """Remove ``InjectedMarker`` metadata, keeping any other ``Annotated`` metadata."""
    inner, *metadata = get_args(annotation)
    remaining = tuple(item for item in metadata if not isinstance(item, InjectedMarker))
    if not remaining:
        return inner
    return _build_annotated((inner, *remaining))


__all__ = [
    "Component",
    "Injected",
    "InjectedMarker",
    "is_injected_annotation",
    "normalize_component",
    "split_component",
    "strip_injected",
]
