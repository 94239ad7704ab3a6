"""Turn collected definitions into a declarative component graph.

Every declared dependency becomes a :class:`~entwire.domain.Ref` placeholder,
whether or not a definition for the target exists. Missing targets are
reported by the lifecycle manager when the graph is initialised.

Definitions that name a parent slot are not registered on their own. The slot
is keyed by :class:`~entwire.domain.SlotKey` and its config holds the children
under ``"component"``: the single child's value, or a list of the children's
values in discovery order when several children target the same parent.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Hashable

from entwire.domain import ComponentDef, ComponentKey, Ref, SlotKey
from entwire.lifecycle import KeyHooks

__all__ = ["ComponentGraph", "build_graph"]

logger = logging.getLogger(__name__)

SLOT_PARAMETER = "component"


@dataclass(frozen=True)
class ComponentGraph:
    """A declarative graph ready for the lifecycle manager.

    Attributes:
        config: Graph keys mapped to config values holding dependency placeholders.
        definitions: The definitions the graph was built from.
        halt_hooks: Halt hooks keyed by the component they tear down.
    """

    config: dict[Hashable, dict[str, Any]]
    definitions: dict[ComponentKey, ComponentDef]
    halt_hooks: dict[ComponentKey, Callable[[Any], Any]] = field(default_factory=dict)

    def hooks(self, key: Hashable) -> KeyHooks:
        if isinstance(key, SlotKey):
            return KeyHooks(self._init_slot, self._halt_hook(key.parent))
        if isinstance(key, ComponentKey):
            return KeyHooks(self._init_component, self._halt_hook(key))
        raise KeyError(key)

    def _init_component(self, key: ComponentKey, value: dict[str, Any]) -> Any:
        return self.definitions[key].init(value)

    def _init_slot(self, key: SlotKey, value: dict[str, Any]) -> Any:
        parent = self.definitions.get(key.parent)
        if parent is None or not parent.descriptor.is_factory:
            return value[SLOT_PARAMETER]
        return parent.init(value)

    def _halt_hook(self, key: ComponentKey):
        hook = self.halt_hooks.get(key)
        if hook is None:
            return None
        return lambda _, instance: hook(instance)


def build_graph(definitions: Mapping[ComponentKey, ComponentDef]) -> ComponentGraph:
    """Build the declarative graph for a set of collected definitions.

    Args:
        definitions: Collected definitions keyed by component key, in discovery order.

    Returns:
        The :class:`ComponentGraph`; nothing is instantiated.
    """
    config: dict[Hashable, dict[str, Any]] = {}
    halt_hooks: dict[ComponentKey, Callable[[Any], Any]] = {}
    children: dict[ComponentKey, list[ComponentDef]] = {}

    for key, definition in definitions.items():
        if definition.halts is not None:
            halt_hooks[definition.halts] = definition.target
        elif definition.parent is not None:
            children.setdefault(definition.parent, []).append(definition)
        else:
            config[key] = {
                parameter_name: Ref(dependency)
                for parameter_name, dependency in definition.dependencies.items()
            }

    slots: dict[ComponentKey, SlotKey] = {}
    for parent, slot_children in children.items():
        slot = SlotKey(parent, tuple(child.key for child in slot_children))
        values = [child.target for child in slot_children]
        config[slot] = {
            **config.pop(parent, {}),
            SLOT_PARAMETER: values[0] if len(values) == 1 else values,
        }
        slots[parent] = slot
        logger.debug("Parent slot %s filled by %d children", parent, len(values))

    if slots:
        config = {
            key: {
                name: Ref(slots[item.key]) if isinstance(item, Ref) and item.key in slots else item
                for name, item in value.items()
            }
            for key, value in config.items()
        }

    return ComponentGraph(config, dict(definitions), halt_hooks)
