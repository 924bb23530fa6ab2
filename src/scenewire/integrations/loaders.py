"""Glue for loaders of other toolkits that build objects from declarative files.

``wire_loader`` is the preferred extension point: wrap the function that
returns the loaded object tree. ``intercept_loader`` patches a loader in place
for toolkits whose loader cannot be wrapped at the call site; it is fragile by
nature and should be undone with the returned ``restore`` callable.
"""

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable, Iterable
from typing import Any, TypeVar, cast, overload

from scenewire.exceptions import SceneWireError
from scenewire.lifecycle import did_instantiate
from scenewire.registry import ContainerRegistry

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_SCENEWIRE_WIRED_ATTR = "__scenewire_wired__"
_MISSING: Any = object()


def is_wired(loader: object) -> bool:
    return bool(getattr(loader, _SCENEWIRE_WIRED_ATTR, False))


@overload
def wire_loader(
    loader: F,
    *,
    tag_of: Callable[[Any], str | None] | None = None,
    walk: Callable[[Any], Iterable[Any]] | None = None,
    registry: ContainerRegistry | None = None,
) -> F: ...


@overload
def wire_loader(
    loader: None = None,
    *,
    tag_of: Callable[[Any], str | None] | None = None,
    walk: Callable[[Any], Iterable[Any]] | None = None,
    registry: ContainerRegistry | None = None,
) -> Callable[[F], F]: ...


def wire_loader(
    loader: F | None = None,
    *,
    tag_of: Callable[[Any], str | None] | None = None,
    walk: Callable[[Any], Iterable[Any]] | None = None,
    registry: ContainerRegistry | None = None,
) -> F | Callable[[F], F]:
    """Fire the lifecycle event for objects returned by a third-party loader.

    Supports direct calls and decorator form. After the loader returns, every
    object yielded by ``walk(root)`` goes through ``did_instantiate`` with the
    tag reported by ``tag_of``. The loader's return value is passed through
    unchanged.

    Args:
        loader: Function materialising objects from a declarative definition.
        tag_of: Returns the scene tag of a loaded object. Defaults to ``None``
            for every object.
        walk: Returns the objects to process for a loaded root, children
            before parents. Defaults to the root alone.
        registry: Container registry used for resolution. Defaults to the
            process-wide registry.

    Returns:
        The wrapped loader, or a decorator when ``loader`` is omitted.

    Examples:
        .. code-block:: python

            @wire_loader(tag_of=lambda widget: widget.property("sceneTag"))
            def load_form(path: str) -> QWidget:
                return uic.loadUi(path)

    """

    def decorator(func: F) -> F:
        if is_wired(func):
            return func

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            root = func(*args, **kwargs)
            loaded = walk(root) if walk is not None else (root,)
            for instance in loaded:
                tag = tag_of(instance) if tag_of is not None else None
                did_instantiate(instance, tag, registry=registry)
            return root

        setattr(wrapper, _SCENEWIRE_WIRED_ATTR, True)
        return cast("F", wrapper)

    if loader is None:
        return decorator
    return decorator(loader)


def intercept_loader(
    owner: Any,
    name: str,
    *,
    tag_of: Callable[[Any], str | None] | None = None,
    walk: Callable[[Any], Iterable[Any]] | None = None,
    registry: ContainerRegistry | None = None,
) -> Callable[[], None]:
    """Replace ``owner.name`` with a wired version of itself.

    Use this only for toolkits that offer no way to wrap their loader at the
    call site. Functions, static methods and class methods defined on a class
    or module are supported.

    Args:
        owner: Class or module defining the loader.
        name: Attribute name of the loader.
        tag_of: See ``wire_loader``.
        walk: See ``wire_loader``.
        registry: See ``wire_loader``.

    Returns:
        A callable restoring the original attribute.

    Raises:
        SceneWireError: If the attribute is already intercepted.
        AttributeError: If ``owner`` has no attribute ``name``.

    """
    raw = inspect.getattr_static(owner, name)
    function = raw.__func__ if isinstance(raw, (staticmethod, classmethod)) else raw
    if is_wired(function):
        msg = f"{owner!r}.{name} is already intercepted"
        raise SceneWireError(msg)
    if not callable(function):
        msg = f"{owner!r}.{name} is not callable"
        raise TypeError(msg)

    wired = wire_loader(function, tag_of=tag_of, walk=walk, registry=registry)
    if isinstance(raw, staticmethod):
        replacement: Any = staticmethod(wired)
    elif isinstance(raw, classmethod):
        replacement = classmethod(wired)
    else:
        replacement = wired

    own_attribute = vars(owner).get(name, _MISSING)
    setattr(owner, name, replacement)
    logger.debug("Intercepted loader %r.%s", owner, name)

    def restore() -> None:
        if inspect.getattr_static(owner, name, None) is not replacement:
            return
        if own_attribute is _MISSING:
            delattr(owner, name)
        else:
            setattr(owner, name, own_attribute)
        logger.debug("Restored loader %r.%s", owner, name)

    return restore


__all__ = ["intercept_loader", "is_wired", "wire_loader"]
