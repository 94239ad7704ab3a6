"""Domain models shared by autowiring, entity declarations and the lifecycle adapter."""

from dataclasses import dataclass
from typing import Any, Hashable, Optional

__all__ = [
    "ComponentKey",
    "SlotKey",
    "EntityKey",
    "Ref",
    "Dependency",
    "ComponentDescriptor",
    "ComponentDef",
]


@dataclass(frozen=True, order=True)
class ComponentKey:
    """Identifies a component by the module that declares it and its name.

    Example:
        >>> ComponentKey.parse("app.db/connection")
        ComponentKey(scope='app.db', name='connection')
        >>> ComponentKey.parse("connection", scope="app.db")
        ComponentKey(scope='app.db', name='connection')
    """

    scope: str
    name: str

    @classmethod
    def parse(cls, value: str, scope: Optional[str] = None) -> "ComponentKey":
        declared_scope, sep, name = value.rpartition("/")
        if sep:
            return cls(declared_scope, name)
        if scope is None:
            raise ValueError(f"{value!r} is not qualified and no scope was given")
        return cls(scope, value)

    def __str__(self) -> str:
        return f"{self.scope}/{self.name}"


@dataclass(frozen=True)
class SlotKey:
    """Graph key for a parent slot filled by one or more child components."""

    parent: ComponentKey
    children: tuple[ComponentKey, ...]

    def __str__(self) -> str:
        return f"{self.parent}[{', '.join(str(child) for child in self.children)}]"


@dataclass(frozen=True)
class EntityKey:
    """Graph key for an entity declaration."""

    entity_type: str

    def __str__(self) -> str:
        return f"entity:{self.entity_type}"


@dataclass(frozen=True)
class Ref:
    """Placeholder for the initialised value of another graph key."""

    key: Hashable


@dataclass(frozen=True)
class Dependency:
    """Represents a dependency required by a component.

    Attributes:
        parameter_name: The parameter the dependency is passed as.
        component_name: The name of the component that fulfils this dependency,
            either qualified (``scope/name``) or relative to the declaring scope.
    """

    parameter_name: str
    component_name: str


@dataclass(frozen=True)
class ComponentDescriptor:
    """Static description of an autowired definition, attached when it is declared.

    Attributes:
        target: The factory (function or class), halt hook, or plain value.
        name: Explicit component name, or None to use the name it is bound to.
        dependencies: Injected dependencies of a factory.
        parent: Name of the parent slot this component contributes to, if any.
        halts: Name of the component this definition is the halt hook for, if any.
        is_factory: Whether the target is called with its dependencies on init.
    """

    target: Any
    name: Optional[str] = None
    dependencies: tuple[Dependency, ...] = ()
    parent: Optional[str] = None
    halts: Optional[str] = None
    is_factory: bool = True


@dataclass(frozen=True)
class ComponentDef:
    """A collected definition with its dependencies resolved to component keys."""

    key: ComponentKey
    descriptor: ComponentDescriptor
    dependencies: dict[str, ComponentKey]
    parent: Optional[ComponentKey] = None
    halts: Optional[ComponentKey] = None

    @property
    def target(self) -> Any:
        return self.descriptor.target

    def init(self, resolved: dict[str, Any]) -> Any:
        if not self.descriptor.is_factory:
            return self.target
        return self.target(**resolved)

