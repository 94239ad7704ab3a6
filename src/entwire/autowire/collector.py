"""Collect autowired definitions from project modules."""

import importlib
import inspect
import logging
from types import ModuleType
from typing import Any, Iterable, Optional, Union

from entwire.autowire.markers import AutowiredValue, descriptor_of
from entwire.domain import ComponentDef, ComponentKey

__all__ = ["collect_autowired", "find_components", "component_dependencies"]

logger = logging.getLogger(__name__)


def collect_autowired(
    scope: str, acc: dict[ComponentKey, ComponentDef], name: str, value: Any
) -> dict[ComponentKey, ComponentDef]:
    """Add one definition to ``acc`` if it is autowired.

    Args:
        scope: Name of the module declaring the definition.
        acc: Definitions collected so far; not modified.
        name: The name the definition is bound to in ``scope``.
        value: The definition itself.

    Returns:
        ``acc`` unchanged for definitions without the autowired marker, otherwise a
        new mapping that also holds the definition under its component key.
    """
    descriptor = descriptor_of(value)
    if descriptor is None:
        return acc

    key = ComponentKey(scope, descriptor.name or name)
    definition = ComponentDef(
        key,
        descriptor,
        {
            dependency.parameter_name: ComponentKey.parse(dependency.component_name, scope)
            for dependency in descriptor.dependencies
        },
        ComponentKey.parse(descriptor.parent, scope) if descriptor.parent else None,
        ComponentKey.parse(descriptor.halts, scope) if descriptor.halts else None,
    )
    return {**acc, key: definition}


def find_components(modules: Iterable[Union[str, ModuleType]]) -> dict[ComponentKey, ComponentDef]:
    """Import ``modules`` and collect their autowired definitions in discovery order.

    Functions, classes and autowired values imported from other modules are
    skipped, so each definition is collected once, under the module that declares
    it, whatever order the modules come in.
    """
    definitions: dict[ComponentKey, ComponentDef] = {}
    for module in modules:
        if isinstance(module, str):
            module = importlib.import_module(module)

        for name, value in vars(module).items():
            declared_in = _declaring_module(value)
            if declared_in is not None and declared_in != module.__name__:
                continue
            definitions = collect_autowired(module.__name__, definitions, name, value)

    logger.debug("Collected %d autowired definitions", len(definitions))
    return definitions


def _declaring_module(value: Any) -> Optional[str]:
    if inspect.isfunction(value) or inspect.isclass(value):
        return value.__module__
    if isinstance(value, AutowiredValue):
        return value.module
    return None


def component_dependencies(definition: ComponentDef) -> list[ComponentKey]:
    """Return the keys a definition has graph edges to."""
    return list(definition.dependencies.values())
