"""Compile canonical entity specs into pydantic validators.

Each entity becomes a strict, open pydantic model. Fields are bound by alias so
any declared field name works. Reference fields are compiled into a check that
asks a :class:`RefResolver` for the target's reference validator every time a
value is validated, so the target may be registered after the referencing
entity.
"""

import re
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Callable, Protocol
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, create_model

from entwire.entity.spec import (
    OPTIONAL,
    SIZED_TYPES,
    EntityRef,
    EntitySpec,
    FieldType,
    ParamPrimitive,
    Primitive,
    Validator,
)

__all__ = ["RefResolver", "RefCheck", "compile_entity", "compile_ref", "humanize"]

_MODEL_CONFIG = ConfigDict(strict=True, extra="allow", arbitrary_types_allowed=True)
_ADAPTER_CONFIG = ConfigDict(strict=True, arbitrary_types_allowed=True)

_PRIMITIVES: dict[str, Any] = {
    "any": Any,
    "nil": type(None),
    "string": str,
    "keyword": str,
    "symbol": str,
    "int": int,
    "float": float,
    "double": float,
    "number": float,
    "decimal": Decimal,
    "boolean": bool,
    "uuid": UUID,
    "inst": datetime,
    "datetime": datetime,
    "date": date,
    "map": dict,
    "vector": list,
    "sequential": list,
    "set": set,
}


class RefCheck(Protocol):
    def __call__(self, value: Any) -> Any: ...


class RefResolver(Protocol):
    def ref_check(self, entity_type: str) -> RefCheck: ...


def _bounds(name: str, props: dict[str, Any]) -> dict[str, Any]:
    lower, upper = ("min_length", "max_length") if name in SIZED_TYPES else ("ge", "le")
    constraints = {}
    if "min" in props:
        constraints[lower] = props["min"]
    if "max" in props:
        constraints[upper] = props["max"]
    return constraints


def _predicate(func: Callable[[Any], Any]) -> Callable[[Any], Any]:
    label = getattr(func, "__name__", repr(func))

    def check(value: Any) -> Any:
        if not func(value):
            raise ValueError(f"should satisfy {label}")
        return value

    return check


def _referencing(resolver: RefResolver, entity_type: str) -> Callable[[Any], Any]:
    def check(value: Any) -> Any:
        return resolver.ref_check(entity_type)(value)

    return check


def annotation_for(field_type: FieldType, resolver: RefResolver) -> Any:
    """Return the pydantic annotation validating one canonical field type."""
    if isinstance(field_type, Primitive):
        return _PRIMITIVES[field_type.name]
    if isinstance(field_type, ParamPrimitive):
        base = _PRIMITIVES[field_type.name]
        return Annotated[base, Field(**_bounds(field_type.name, field_type.props))]
    if isinstance(field_type, Validator):
        if isinstance(field_type.func, type):
            return field_type.func
        return Annotated[Any, AfterValidator(_predicate(field_type.func))]
    if isinstance(field_type, EntityRef):
        return Annotated[Any, AfterValidator(_referencing(resolver, field_type.entity_type))]
    raise TypeError(f"Unknown field type {field_type!r}")


def _model_name(entity_type: str) -> str:
    return re.sub(r"\W", "_", entity_type)


def compile_entity(entity_type: str, spec: EntitySpec, resolver: RefResolver) -> type[BaseModel]:
    """Build the pydantic model validating data for ``entity_type``."""
    fields = {}
    for position, field_spec in enumerate(spec.fields):
        annotation = annotation_for(field_spec.type, resolver)
        default = None if field_spec.prop(OPTIONAL) else ...
        fields[f"field_{position}"] = (annotation, Field(default, validation_alias=field_spec.name))
    return create_model(_model_name(entity_type), __config__=_MODEL_CONFIG, **fields)


def compile_ref(entity_type: str, pk_name: str, pk_type: FieldType, resolver: RefResolver) -> RefCheck:
    """Build the check accepting a raw primary key or a map containing it."""
    adapter = TypeAdapter(annotation_for(pk_type, resolver), config=_ADAPTER_CONFIG)
    expected = f"should be a {entity_type} primary key or a map containing {pk_name!r}"

    def check(value: Any) -> Any:
        if isinstance(value, Mapping):
            if pk_name not in value:
                raise ValueError(expected)
            candidate = value[pk_name]
        else:
            candidate = value
        try:
            adapter.validate_python(candidate)
        except ValidationError:
            raise ValueError(expected) from None
        return value

    return check


def humanize(error: ValidationError) -> dict[str, list[str]]:
    """Group pydantic error messages by the field they were reported for."""
    messages: dict[str, list[str]] = {}
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "data"
        messages.setdefault(location, []).append(detail["msg"])
    return messages
