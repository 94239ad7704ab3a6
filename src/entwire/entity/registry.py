"""A registry of entity schemas and their derived reference schemas.

The registry state is an immutable snapshot. ``register`` builds a new snapshot
and swaps it in, so readers always see either the state before or after a
registration, never a partial one. Validators compiled from a snapshot are
cached on it and discarded with it.
"""

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from entwire.entity.compiler import RefCheck, compile_entity, compile_ref, humanize
from entwire.entity.spec import (
    FOREIGN_KEY,
    IDENTITY,
    PRIMARY_KEY,
    EntityRef,
    EntitySpec,
    FieldSpec,
    FieldType,
    ParamPrimitive,
    Primitive,
    Validator,
    entity_ref_name,
    is_optional_ref,
    normalize,
    parse_spec,
)
from entwire.errors import DataValidationError, UnknownEntityError

__all__ = ["EntityRefSchema", "EntityRegistry", "derive_ref_schema", "field_schema", "entities"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityRefSchema:
    """What a reference to an entity must look like.

    A reference is either a raw primary key value or a map containing the
    primary key field.
    """

    entity_type: str
    pk_name: str
    pk_type: FieldType


def derive_ref_schema(entity_type: str, spec: EntitySpec) -> Optional[EntityRefSchema]:
    """Derive the reference schema from the first field marked ``primary-key?``."""
    for field_spec in spec.fields:
        if field_spec.prop(PRIMARY_KEY):
            return EntityRefSchema(entity_type, field_spec.name, field_spec.type)
    return None


def field_schema(field_spec: FieldSpec) -> dict[str, Any]:
    """Return a simplified ``{"type": ..., "props": ...}`` view of a field's type."""
    field_type = field_spec.type
    if isinstance(field_type, Primitive):
        return {"type": field_type.name, "props": None}
    if isinstance(field_type, ParamPrimitive):
        return {"type": field_type.name, "props": dict(field_type.props)}
    if isinstance(field_type, Validator):
        return {"type": getattr(field_type.func, "__name__", repr(field_type.func)), "props": None}
    if isinstance(field_type, EntityRef):
        return {
            "type": "entity-ref",
            "props": {"entity": field_type.entity_type, "entity-ref": field_type.ref_name},
        }
    raise TypeError(f"Unknown field type {field_type!r}")


class _Snapshot:
    def __init__(
        self,
        schemas: Mapping[str, EntitySpec],
        refs: Mapping[str, Optional[EntityRefSchema]],
    ):
        self.schemas = MappingProxyType(dict(schemas))
        self.refs = MappingProxyType(dict(refs))
        self.models: dict[str, type[BaseModel]] = {}
        self.ref_checks: dict[str, RefCheck] = {}


class EntityRegistry:
    """Maps entity types to canonical specs and derived reference schemas."""

    def __init__(self):
        self._snapshot = _Snapshot({}, {})
        self._write_lock = threading.Lock()

    def register(self, entity_type: str, spec: Any) -> EntitySpec:
        """Store the schema of ``entity_type`` together with its reference schema.

        Registering the same type again replaces the previous schema. Referenced
        entities do not need to be registered yet.

        Args:
            entity_type: Qualified entity type, e.g. ``"shop.entities/user"``.
            spec: A canonical :class:`EntitySpec` or a raw declaration.

        Returns:
            The normalised spec that was stored.
        """
        canonical = normalize(parse_spec(spec)).spec
        ref_schema = derive_ref_schema(entity_type, canonical)
        ref_name = entity_ref_name(entity_type)

        with self._write_lock:
            current = self._snapshot
            self._snapshot = _Snapshot(
                {**current.schemas, entity_type: canonical},
                {**current.refs, ref_name: ref_schema},
            )

        logger.debug("Registered entity %s (reference schema %s)", entity_type, ref_name)
        return canonical

    def __contains__(self, entity_type: str) -> bool:
        return entity_type in self._snapshot.schemas

    def entity_types(self) -> list[str]:
        return list(self._snapshot.schemas)

    def schema(self, entity_type: str) -> EntitySpec:
        try:
            return self._snapshot.schemas[entity_type]
        except KeyError:
            raise UnknownEntityError(entity_type) from None

    def ref_schema(self, entity_type: str) -> EntityRefSchema:
        return self._ref_schema_in(self._snapshot, entity_type)

    @staticmethod
    def _ref_schema_in(snapshot: _Snapshot, entity_type: str) -> EntityRefSchema:
        if entity_type not in snapshot.schemas:
            raise UnknownEntityError(entity_type)
        ref_schema = snapshot.refs.get(entity_ref_name(entity_type))
        if ref_schema is None:
            raise UnknownEntityError(
                entity_type,
                f"Entity {entity_type} has no {PRIMARY_KEY} field and cannot be referenced",
            )
        return ref_schema

    def ref_check(self, entity_type: str) -> RefCheck:
        snapshot = self._snapshot
        check = snapshot.ref_checks.get(entity_type)
        if check is None:
            ref_schema = self._ref_schema_in(snapshot, entity_type)
            check = compile_ref(entity_type, ref_schema.pk_name, ref_schema.pk_type, self)
            snapshot.ref_checks[entity_type] = check
        return check

    def validate(self, entity_type: str, data: Any) -> bool:
        """Check ``data`` against the schema of ``entity_type``.

        Raises:
            UnknownEntityError: If the entity, or an entity referenced by a present
                field, was never registered.
            DataValidationError: With per-field messages when the data is invalid.
        """
        snapshot = self._snapshot
        model = snapshot.models.get(entity_type)
        if model is None:
            model = compile_entity(entity_type, self.schema(entity_type), self)
            snapshot.models[entity_type] = model

        if not isinstance(data, Mapping):
            raise DataValidationError(entity_type, {"data": ["should be a map"]})

        try:
            model.model_validate(dict(data))
        except ValidationError as error:
            raise DataValidationError(entity_type, humanize(error)) from error
        return True

    def fields(self, entity_type: str) -> list[tuple[str, FieldSpec]]:
        """Return persisted fields in declaration order, without optional relations."""
        return [
            (field_spec.name, field_spec)
            for field_spec in self.schema(entity_type).fields
            if not is_optional_ref(field_spec.properties)
        ]

    def columns(self, entity_type: str) -> list[str]:
        return [name for name, _ in self.fields(entity_type)]

    def values(self, entity_type: str, data: Mapping[str, Any]) -> tuple:
        """Extract column values from ``data``, in column order.

        Example:
            >>> registry.values("shop.entities/user", {"name": "Jack", "id": 1})
            (1, 'Jack')
        """
        return tuple(data.get(column) for column in self.columns(entity_type))

    def identity_field(self, entity_type: str) -> Optional[tuple[str, FieldSpec]]:
        return next(
            ((name, field_spec) for name, field_spec in self.fields(entity_type) if field_spec.prop(IDENTITY)),
            None,
        )

    def prop(self, entity_type: str, key: str) -> Any:
        return self.schema(entity_type).properties.get(key)

    def depends_on(self, target: str, dependency: str) -> bool:
        """Check whether ``target`` holds a required foreign key to ``dependency``."""
        return any(
            field_spec.prop(FOREIGN_KEY)
            and isinstance(field_spec.type, EntityRef)
            and field_spec.type.entity_type == dependency
            for _, field_spec in self.fields(target)
        )

    def is_ref(self, field_spec: FieldSpec) -> bool:
        return isinstance(field_spec.type, EntityRef) and field_spec.type.entity_type in self

    def ref_field_prop(self, field_spec: FieldSpec, key: str) -> Any:
        """Read an entity-level property of the entity a reference field points at."""
        if not self.is_ref(field_spec):
            return None
        return self.prop(field_spec.type.entity_type, key)


entities = EntityRegistry()
"""Default registry for applications that do not manage their own."""
