"""High level entry points for initialising a system."""

from collections.abc import Mapping
from typing import Any, Hashable, Optional

from entwire.autowire import OMITTED, build_config
from entwire.config import EntwireSettings
from entwire.domain import EntityKey
from entwire.entity import EntityRegistry, entities, entity_config, entity_hooks
from entwire.lifecycle import KeyHooks, System, init_system

__all__ = ["make_system"]


def make_system(
    root: Any = OMITTED,
    entity_specs: Optional[Mapping[str, Any]] = None,
    registry: Optional[EntityRegistry] = None,
    settings: Optional[EntwireSettings] = None,
) -> System:
    """Build the component graph for ``root`` and initialise it with entity declarations.

    Args:
        root: Scan root, see :func:`~entwire.autowire.scanner.find_project_modules`.
        entity_specs: Raw entity declarations keyed by entity type. They are
            registered in foreign-key order.
        registry: Registry the entities are registered in; the default registry if None.
        settings: Overrides the default settings.

    Returns:
        The initialised :class:`~entwire.lifecycle.System`.

    Raises:
        SpecGrammarError: If an entity declaration is invalid; nothing is initialised.
        MissingDependencyError: If a component depends on a key nobody defines.
        DependencyError: If the graph contains a cycle.
    """
    graph = build_config(root, settings)
    config = {**entity_config(entity_specs or {}), **graph.config}
    entity_key_hooks = entity_hooks(registry if registry is not None else entities)

    def hooks(key: Hashable) -> KeyHooks:
        if isinstance(key, EntityKey):
            return entity_key_hooks
        return graph.hooks(key)

    return init_system(config, hooks)
