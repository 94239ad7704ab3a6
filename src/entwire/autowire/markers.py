"""Markers that make definitions eligible for autowiring.

A definition is autowired when it carries a :class:`~entwire.domain.ComponentDescriptor`
under :data:`AUTOWIRED_KEY`. The descriptor is built once, when the decorator runs,
and names everything the collector needs: the component name, its injected
dependencies, the parent slot it contributes to and the component it halts.

Example:
    >>> @autowired()
    ... def db_connection() -> Connection:
    ...     return Connection()
    >>>
    >>> @autowired()
    ... def status(db: Annotated[Connection, Inject("db_connection")]) -> Callable:
    ...     return lambda: {"status": "ok", "connection": db.ping()}
    >>>
    >>> @halts("db_connection")
    ... def close_connection(connection: Connection) -> str:
    ...     return connection.close()
"""

import inspect
import sys
from dataclasses import dataclass
from typing import Annotated, Any, Callable, Optional, get_args, get_origin, get_type_hints

from entwire.domain import ComponentDescriptor, Dependency
from entwire.errors import DependencyError

__all__ = [
    "AUTOWIRED_KEY",
    "Inject",
    "AutowiredValue",
    "autowired",
    "autowired_value",
    "halts",
    "descriptor_of",
]

AUTOWIRED_KEY = "__autowired__"


@dataclass(frozen=True)
class Inject:
    """``Annotated`` metadata marking a parameter as an injected component reference."""

    component_name: str


class AutowiredValue:
    """A plain value registered as a component under the name it is bound to.

    Attributes:
        value: The registered value.
        module: Name of the module that declared it, if known. Modules that merely
            import the marker do not collect it again.
    """

    def __init__(
        self,
        value: Any,
        name: Optional[str] = None,
        parent: Optional[str] = None,
        module: Optional[str] = None,
    ):
        self.value = value
        self.module = module
        setattr(self, AUTOWIRED_KEY, ComponentDescriptor(value, name, parent=parent, is_factory=False))

    def __repr__(self) -> str:
        return f"AutowiredValue({self.value!r})"


def set_metadata(target: Any, descriptor: ComponentDescriptor) -> Any:
    setattr(target, AUTOWIRED_KEY, descriptor)
    return target


def descriptor_of(value: Any) -> Optional[ComponentDescriptor]:
    descriptor = getattr(value, AUTOWIRED_KEY, None)
    return descriptor if isinstance(descriptor, ComponentDescriptor) else None


def autowired(
    name: Optional[str] = None,
    parent: Optional[str] = None,
    depends_on: Optional[dict[str, str]] = None,
) -> Callable:
    """Decorator marking a function or class as an autowired component factory.

    Args:
        name: Component name; defaults to the name the factory is bound to in its module.
        parent: Name of a parent slot to contribute this factory to instead of
            registering it as a standalone component.
        depends_on: Extra dependencies as a mapping of parameter name to component name.
            Parameters annotated with :class:`Inject` are picked up automatically.

    Returns:
        A decorator returning the factory unchanged apart from its descriptor.
    """

    def decorator(obj):
        if not (inspect.isclass(obj) or inspect.isfunction(obj)):
            raise DependencyError(f"{obj} is not a class or function")

        dependencies = _get_dependencies(obj) + tuple(
            Dependency(parameter_name, component_name)
            for parameter_name, component_name in (depends_on or {}).items()
        )
        return set_metadata(obj, ComponentDescriptor(obj, name, dependencies, parent))

    return decorator


def autowired_value(value: Any, name: Optional[str] = None, parent: Optional[str] = None) -> AutowiredValue:
    """Register a plain value, e.g. a constant or a handler contributed to a parent slot."""
    return AutowiredValue(value, name, parent, sys._getframe(1).f_globals.get("__name__"))


def halts(component_name: str) -> Callable:
    """Decorator marking a function as the halt hook of another component.

    The hook is called with the component's instance when the system halts.
    """

    def decorator(func):
        if not inspect.isfunction(func):
            raise DependencyError(f"{func} is not a function")
        return set_metadata(func, ComponentDescriptor(func, halts=component_name, is_factory=False))

    return decorator


def _get_dependencies(obj: Any) -> tuple[Dependency, ...]:
    """Extract the parameters annotated with :class:`Inject`.

    Example:
        >>> def service(untyped, db: Annotated[Database, Inject("db")]) -> Service:
        ...     pass
        >>> _get_dependencies(service)
        (Dependency(parameter_name='db', component_name='db'),)
    """
    func = obj.__init__ if inspect.isclass(obj) else obj
    if func is object.__init__:
        return ()
    hints = get_type_hints(func, include_extras=True)
    return tuple(
        dependency
        for dependency in (
            _make_dependency(hints.get(name), name)
            for name in inspect.signature(obj).parameters
        )
        if dependency is not None
    )


def _make_dependency(annotation: Any, name: str) -> Optional[Dependency]:
    if annotation is None or get_origin(annotation) is not Annotated:
        return None
    _, *metadata = get_args(annotation)
    marker = next((m for m in metadata if isinstance(m, Inject)), None)
    return Dependency(name, marker.component_name) if marker else None
