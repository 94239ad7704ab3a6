"""Entity declarations: the DSL parser, the schema registry and entity handles."""

from entwire.entity.entity import (
    Entity,
    create_entity,
    entity_config,
    entity_hooks,
    init_entity,
    prep_entity,
)
from entwire.entity.registry import EntityRefSchema, EntityRegistry, entities, field_schema
from entwire.entity.spec import (
    EntityRef,
    EntitySpec,
    FieldSpec,
    ParamPrimitive,
    PreparedSpec,
    Primitive,
    Validator,
    entity_ref_name,
    normalize,
    parse_spec,
    prepare_spec,
)

__all__ = [
    "Entity",
    "EntityRef",
    "EntityRefSchema",
    "EntityRegistry",
    "EntitySpec",
    "FieldSpec",
    "ParamPrimitive",
    "PreparedSpec",
    "Primitive",
    "Validator",
    "create_entity",
    "entities",
    "entity_config",
    "entity_hooks",
    "entity_ref_name",
    "field_schema",
    "init_entity",
    "normalize",
    "parse_spec",
    "prep_entity",
    "prepare_spec",
]
