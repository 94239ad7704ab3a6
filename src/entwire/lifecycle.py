"""Reference lifecycle manager for declarative graphs.

A graph config maps keys to values that may contain :class:`~entwire.domain.Ref`
placeholders. :func:`init_system` orders the keys so every referenced key is
initialised first, replaces the placeholders with the initialised values and
hands each value to the key's init hook. :meth:`System.halt` tears the system
down in reverse order.

This is the single place where wiring failures surface: a placeholder pointing
at a key that is not in the config raises
:class:`~entwire.errors.MissingDependencyError` here, never while the graph is
being built.
"""

import logging
from collections import defaultdict, deque
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional

from entwire.domain import Ref
from entwire.errors import DependencyError, MissingDependencyError

__all__ = ["KeyHooks", "System", "init_system", "references", "resolve"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyHooks:
    """How to bring one graph key up and down.

    Attributes:
        init: Called with the key and its resolved config value; returns the instance.
        halt: Called with the key and its instance when the system halts.
    """

    init: Callable[[Hashable, Any], Any]
    halt: Optional[Callable[[Hashable, Any], Any]] = None


HookLookup = Callable[[Hashable], KeyHooks]


def references(value: Any) -> list[Hashable]:
    """Collect the keys of all placeholders in a config value, in order of appearance."""
    if isinstance(value, Ref):
        return [value.key]
    if isinstance(value, Mapping):
        return [key for item in value.values() for key in references(item)]
    if isinstance(value, (list, tuple)):
        return [key for item in value for key in references(item)]
    return []


def resolve(value: Any, instances: Mapping[Hashable, Any]) -> Any:
    """Replace placeholders in a config value with initialised instances."""
    if isinstance(value, Ref):
        return instances[value.key]
    if isinstance(value, Mapping):
        return {key: resolve(item, instances) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve(item, instances) for item in value]
    if isinstance(value, tuple):
        return tuple(resolve(item, instances) for item in value)
    return value


def _initialisation_order(dependencies: Mapping[Hashable, set[Hashable]]) -> list[Hashable]:
    """Order keys so each one follows every key it references.

    Keys that become ready at the same time keep their config order.

    Raises:
        DependencyError: If some keys reference each other in a cycle.
    """
    waiting = {key: set(keys) for key, keys in dependencies.items()}
    dependees: dict[Hashable, list[Hashable]] = defaultdict(list)
    for key, keys in waiting.items():
        for dependency in keys:
            dependees[dependency].append(key)

    ready = deque(key for key, keys in waiting.items() if not keys)
    order = []
    while ready:
        key = ready.popleft()
        order.append(key)
        for dependee in dependees[key]:
            waiting[dependee].discard(key)
            if not waiting[dependee]:
                ready.append(dependee)

    if len(order) < len(waiting):
        initialised = set(order)
        raise DependencyError(
            f"Unresolvable dependencies: {sorted(str(key) for key in waiting if key not in initialised)}"
        )
    return order


class System:
    """An initialised system: instances keyed by graph key, in initialisation order."""

    def __init__(self, instances: dict[Hashable, Any], hooks: HookLookup):
        self.instances = instances
        self._hooks = hooks

    def __getitem__(self, key: Hashable) -> Any:
        return self.instances[key]

    def __contains__(self, key: Hashable) -> bool:
        return key in self.instances

    def keys(self) -> list[Hashable]:
        return list(self.instances)

    def halt(self) -> dict[Hashable, Any]:
        """Run halt hooks in reverse initialisation order.

        Returns:
            Results of the halt hooks that ran, keyed by graph key.
        """
        halted = {}
        for key in reversed(list(self.instances)):
            halt = self._hooks(key).halt
            if halt is not None:
                halted[key] = halt(key, self.instances[key])
                logger.debug("Halted %s", key)
        logger.info("Halted system of %d keys", len(self.instances))
        return halted


def init_system(config: Mapping[Hashable, Any], hooks: HookLookup) -> System:
    """Initialise every key of ``config`` in dependency order.

    Args:
        config: Graph keys mapped to values, possibly containing placeholders.
        hooks: Looks up the init and halt hooks for a key.

    Returns:
        The initialised :class:`System`.

    Raises:
        MissingDependencyError: If a placeholder points at a key missing from ``config``.
        DependencyError: If the keys reference each other in a cycle.
    """
    dependencies = {}
    for key, value in config.items():
        keys = references(value)
        for dependency in keys:
            if dependency not in config:
                raise MissingDependencyError(key, dependency)
        dependencies[key] = set(keys)

    build_order = _initialisation_order(dependencies)

    instances: dict[Hashable, Any] = {}
    system = System(instances, hooks)
    for key in build_order:
        try:
            instances[key] = hooks(key).init(key, resolve(config[key], instances))
        except Exception:
            logger.error("Failed to initialise %s, halting %d initialised keys", key, len(instances))
            system.halt()
            raise
        logger.debug("Initialised %s", key)

    logger.info("Initialised system of %d keys", len(instances))
    return system
