"""Entity handles and the lifecycle hooks for entity declarations."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from entwire.domain import EntityKey, Ref
from entwire.entity.registry import EntityRegistry, entities
from entwire.entity.spec import EntitySpec, FieldSpec, prepare_spec
from entwire.errors import SpecGrammarError
from entwire.lifecycle import KeyHooks

__all__ = [
    "Entity",
    "create_entity",
    "prep_entity",
    "init_entity",
    "entity_config",
    "entity_hooks",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Entity:
    """Runtime handle over a registered entity type.

    Every query goes to the registry, so a handle always reflects the latest
    registration of its type.
    """

    type: str
    registry: EntityRegistry = field(default=entities, repr=False, compare=False)

    def validate(self, data: Any) -> bool:
        return self.registry.validate(self.type, data)

    def fields(self) -> list[tuple[str, FieldSpec]]:
        return self.registry.fields(self.type)

    def columns(self) -> list[str]:
        return self.registry.columns(self.type)

    def values(self, data: Mapping[str, Any]) -> tuple:
        return self.registry.values(self.type, data)

    def identity_field(self) -> Optional[tuple[str, FieldSpec]]:
        return self.registry.identity_field(self.type)

    def prop(self, key: str) -> Any:
        return self.registry.prop(self.type, key)

    def depends_on(self, dependency: "Entity") -> bool:
        return self.registry.depends_on(self.type, dependency.type)


def create_entity(entity_type: str, spec: Any, registry: EntityRegistry = entities) -> Entity:
    registry.register(entity_type, spec)
    return Entity(entity_type, registry)


def prep_entity(entity_type: str, raw_spec: Any) -> dict[Any, Any]:
    """Turn a raw declaration into a config value for the lifecycle manager.

    The value holds the canonical spec under ``"spec"`` and one placeholder per
    entity this one holds a required foreign key to, keyed by that entity type.

    Raises:
        SpecGrammarError: If the declaration does not follow the entity DSL.
    """
    try:
        prepared = prepare_spec(raw_spec)
    except SpecGrammarError as error:
        raise SpecGrammarError(f"Invalid spec schema for entity {entity_type}", error.errors) from None

    value: dict[Any, Any] = {"spec": prepared.spec}
    for dependency in prepared.deps:
        value[dependency] = Ref(EntityKey(dependency))
    return value


def init_entity(entity_type: str, value: Mapping[Any, Any], registry: EntityRegistry = entities) -> Entity:
    spec: EntitySpec = value["spec"]
    return create_entity(entity_type, spec, registry)


def entity_config(raw_specs: Mapping[str, Any]) -> dict[EntityKey, dict[Any, Any]]:
    """Prepare a config entry for each raw declaration, keyed by entity type."""
    return {
        EntityKey(entity_type): prep_entity(entity_type, raw_spec)
        for entity_type, raw_spec in raw_specs.items()
    }


def entity_hooks(registry: EntityRegistry = entities) -> KeyHooks:
    def init(key: EntityKey, value: Mapping[Any, Any]) -> Entity:
        entity = init_entity(key.entity_type, value, registry)
        logger.debug("Initialised entity %s", key.entity_type)
        return entity

    return KeyHooks(init)
