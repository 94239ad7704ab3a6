"""Parsing and normalisation of the entity declaration DSL.

An entity is declared as a sequence::

    ["user", {"table": "users"},
        ["id", {"primary-key?": True}, "uuid"],
        ["name", ("string", {"max": 250})],
        ["role", {"many-to-one?": True}, "shop.entities/role"],
        ["orders", {"one-to-many?": True}, "shop.entities/order"]]

:func:`parse_spec` checks the grammar and turns every field type into one of
the closed set of canonical type nodes. :func:`normalize` then marks required
references as foreign keys and collects the entity types this declaration
must be initialised after.
"""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Callable, Optional, Union

from entwire.errors import SpecGrammarError

__all__ = [
    "Primitive",
    "ParamPrimitive",
    "Validator",
    "EntityRef",
    "FieldType",
    "FieldSpec",
    "EntitySpec",
    "PreparedSpec",
    "PRIMITIVE_TYPES",
    "SIZED_TYPES",
    "NUMERIC_TYPES",
    "parse_spec",
    "normalize",
    "prepare_spec",
    "entity_ref_name",
    "is_optional_ref",
]

logger = logging.getLogger(__name__)

PRIMARY_KEY = "primary-key?"
IDENTITY = "identity?"
FOREIGN_KEY = "foreign-key?"
OPTIONAL = "optional"
OPTIONAL_MARKER = "optional?"

REQUIRED_REL_TYPES = frozenset({"one-to-one?", "many-to-one?"})
OPTIONAL_REL_TYPES = frozenset({"one-to-many?", "many-to-many?"})

PRIMITIVE_TYPES = frozenset(
    {
        "any",
        "nil",
        "string",
        "keyword",
        "symbol",
        "int",
        "float",
        "double",
        "number",
        "decimal",
        "boolean",
        "uuid",
        "inst",
        "datetime",
        "date",
        "map",
        "vector",
        "sequential",
        "set",
    }
)

SIZED_TYPES = frozenset({"string", "keyword", "symbol", "map", "vector", "sequential", "set"})
NUMERIC_TYPES = frozenset({"int", "float", "double", "number", "decimal"})


@dataclass(frozen=True)
class Primitive:
    """A built-in value type named by keyword, e.g. ``"uuid"``."""

    name: str


@dataclass(frozen=True)
class ParamPrimitive:
    """A built-in value type with bounds, e.g. ``("string", {"max": 250})``."""

    name: str
    props: dict[str, Any]


@dataclass(frozen=True)
class Validator:
    """A user supplied check. Classes check by ``isinstance``, other callables are predicates."""

    func: Callable[..., Any]


@dataclass(frozen=True)
class EntityRef:
    """A reference to another entity, resolved against the registry only when validating."""

    entity_type: str

    @property
    def ref_name(self) -> str:
        return entity_ref_name(self.entity_type)


FieldType = Union[Primitive, ParamPrimitive, Validator, EntityRef]


@dataclass(frozen=True)
class FieldSpec:
    name: str
    properties: dict[str, Any]
    type: FieldType

    def prop(self, key: str, default: Any = None) -> Any:
        return self.properties.get(key, default)


@dataclass(frozen=True)
class EntitySpec:
    """Canonical form of an entity declaration.

    Attributes:
        tag: The leading keyword of the declaration.
        properties: Entity-level properties such as the backing table name.
        fields: Field specs in declaration order.
    """

    tag: str
    properties: dict[str, Any] = field(default_factory=dict)
    fields: tuple[FieldSpec, ...] = ()


@dataclass(frozen=True)
class PreparedSpec:
    """A normalised spec and the entity types its required references point at."""

    spec: EntitySpec
    deps: tuple[str, ...]


def entity_ref_name(entity_type: str) -> str:
    """Return the name the reference schema of an entity is registered under.

    Example:
        >>> entity_ref_name("shop.entities/user")
        'shop.entities/user-ref'
    """
    namespace, _, name = entity_type.rpartition("/")
    if not namespace or not name:
        raise ValueError(f"{entity_type!r} is not a qualified entity type")
    return f"{namespace}/{name}-ref"


def is_optional_ref(properties: Optional[dict[str, Any]]) -> bool:
    """Check whether field properties carry an optional relationship marker."""
    return bool(properties) and any(properties.get(marker) for marker in OPTIONAL_REL_TYPES)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_qualified(value: str) -> bool:
    namespace, sep, name = value.rpartition("/")
    return bool(sep and namespace and name)


def _check_bounds(name: str, props: dict) -> Optional[str]:
    bounds = {key: props[key] for key in ("min", "max") if key in props}
    if not bounds:
        return None
    if name in SIZED_TYPES:
        if not all(isinstance(b, int) and not isinstance(b, bool) and b >= 0 for b in bounds.values()):
            return f"length bounds of {name!r} should be non-negative integers"
    elif name in NUMERIC_TYPES:
        if not all(isinstance(b, (int, float, Decimal)) and not isinstance(b, bool) for b in bounds.values()):
            return f"bounds of {name!r} should be numbers"
    else:
        return f"{name!r} does not support min/max bounds"
    return None


def _parse_type(value: Any) -> tuple[Optional[FieldType], Optional[str]]:
    if isinstance(value, (Primitive, ParamPrimitive, Validator, EntityRef)):
        return value, None

    if isinstance(value, str):
        if "/" in value:
            if _is_qualified(value):
                return EntityRef(value), None
            return None, f"{value!r} should be a qualified entity type like 'ns/name'"
        if value in PRIMITIVE_TYPES:
            return Primitive(value), None
        return None, f"unknown type {value!r}"

    if _is_sequence(value):
        if len(value) == 2 and isinstance(value[0], str) and isinstance(value[1], dict):
            if value[0] not in PRIMITIVE_TYPES:
                return None, f"unknown type {value[0]!r}"
            bounds_error = _check_bounds(value[0], value[1])
            if bounds_error:
                return None, bounds_error
            return ParamPrimitive(value[0], dict(value[1])), None
        return None, "a parametrised type should be a pair of type name and properties map"

    if callable(value):
        return Validator(value), None

    return None, (
        "should be a validator, a type name, a [type name, properties] pair "
        "or a qualified entity reference"
    )


def _parse_field(raw: Any) -> tuple[Optional[FieldSpec], dict[str, list[str]]]:
    if isinstance(raw, FieldSpec):
        return raw, {}

    if not _is_sequence(raw) or len(raw) not in (2, 3):
        return None, {"field": ["should be a sequence [name, properties?, type]"]}

    errors: dict[str, list[str]] = {}
    name, *middle, raw_type = raw
    properties = middle[0] if middle else {}

    if not isinstance(name, str) or not name:
        errors["name"] = ["should be a non-empty string"]

    if not isinstance(properties, dict):
        errors["properties"] = ["should be a map"]
    elif not all(isinstance(key, str) for key in properties):
        errors["properties"] = ["keys should be strings"]

    field_type, type_error = _parse_type(raw_type)
    if type_error:
        errors["type"] = [type_error]

    if errors:
        return None, errors
    return FieldSpec(name, dict(properties), field_type), {}


def parse_spec(raw: Any) -> EntitySpec:
    """Check a raw declaration against the entity DSL and convert it to canonical form.

    An :class:`EntitySpec` is returned unchanged, so canonical specs can be fed back in.

    Raises:
        SpecGrammarError: With a mapping from field position to the problems found there.
    """
    if isinstance(raw, EntitySpec):
        return raw

    if not _is_sequence(raw) or len(raw) == 0:
        raise SpecGrammarError(
            "Invalid entity spec",
            {"spec": ["should be a sequence [entity, properties?, field*]"]},
        )

    errors: dict[Any, Any] = {}
    tag, *rest = raw
    if not isinstance(tag, str) or not tag:
        errors["entity"] = ["should be a non-empty string"]

    properties: dict[str, Any] = {}
    if rest and isinstance(rest[0], dict):
        properties, *rest = rest

    fields = []
    for position, raw_field in enumerate(rest):
        parsed, field_errors = _parse_field(raw_field)
        if field_errors:
            errors[position] = field_errors
        else:
            fields.append(parsed)

    if errors:
        raise SpecGrammarError("Invalid entity spec", errors)

    return EntitySpec(tag, dict(properties), tuple(fields))


def normalize(spec: EntitySpec) -> PreparedSpec:
    """Mark references and optional fields and collect required dependencies.

    A reference without an optional relationship marker becomes a foreign key and
    its target is reported as a dependency. ``optional?`` and optional
    relationships are both normalised to ``optional``. Normalising an already
    normalised spec gives the same result.
    """
    fields = []
    deps: list[str] = []

    for field_spec in spec.fields:
        properties = dict(field_spec.properties)
        optional_ref = is_optional_ref(properties)

        if isinstance(field_spec.type, EntityRef) and not optional_ref:
            properties[FOREIGN_KEY] = True
            if field_spec.type.entity_type not in deps:
                deps.append(field_spec.type.entity_type)

        if properties.pop(OPTIONAL_MARKER, False) or optional_ref:
            properties[OPTIONAL] = True

        fields.append(replace(field_spec, properties=properties))

    return PreparedSpec(replace(spec, fields=tuple(fields)), tuple(deps))


def prepare_spec(raw: Any) -> PreparedSpec:
    """Parse and normalise a raw declaration in one step."""
    prepared = normalize(parse_spec(raw))
    logger.debug("Prepared entity spec %r with dependencies %s", prepared.spec.tag, prepared.deps)
    return prepared
