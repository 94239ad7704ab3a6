"""Exceptions raised by entity declaration, validation and component wiring."""

from typing import Any, Optional

__all__ = [
    "EntwireError",
    "SpecGrammarError",
    "DataValidationError",
    "UnknownEntityError",
    "UnsupportedScanInputError",
    "DependencyError",
    "MissingDependencyError",
]


class EntwireError(Exception):
    """Base class for all errors raised by entwire."""

    pass


def _render(errors: Any, indent: int = 1) -> str:
    pad = "  " * indent
    if isinstance(errors, dict):
        lines = []
        for key, value in errors.items():
            if isinstance(value, dict):
                lines.append(f"{pad}{key}:")
                lines.append(_render(value, indent + 1))
            else:
                lines.append(f"{pad}{key}: {'; '.join(str(v) for v in value)}")
        return "\n".join(lines)
    return f"{pad}{errors}"


class SpecGrammarError(EntwireError):
    """Raised when a raw entity spec does not follow the entity DSL.

    Attributes:
        errors: Nested mapping from the offending position (field index, then part
            of the field) to human-readable messages.
    """

    def __init__(self, message: str, errors: dict):
        super().__init__(message)
        self.errors = errors

    def __str__(self) -> str:
        return f"{super().__str__()}\n{_render(self.errors)}"


class DataValidationError(EntwireError):
    """Raised when data does not satisfy an entity schema.

    Attributes:
        entity_type: The entity the data was validated against.
        errors: Mapping from field name to the messages reported for that field.
    """

    def __init__(self, entity_type: str, errors: dict[str, list[str]]):
        super().__init__(f"Invalid data for entity {entity_type}")
        self.entity_type = entity_type
        self.errors = errors

    def __str__(self) -> str:
        return f"{super().__str__()}\n{_render(self.errors)}"


class UnknownEntityError(EntwireError):
    """Raised when an entity type is looked up but was never registered."""

    def __init__(self, entity_type: str, reason: Optional[str] = None):
        super().__init__(reason or f"Entity {entity_type} is not registered")
        self.entity_type = entity_type


class UnsupportedScanInputError(EntwireError):
    """Raised when the scanner receives a root that is not a dotted module name or a module."""

    def __init__(self, value: Any):
        super().__init__(
            f"Cannot scan {value!r} of type {type(value).__name__}: "
            "expected a dotted module name or a module"
        )
        self.value = value


class DependencyError(EntwireError):
    """Raised when a component graph cannot be resolved."""

    pass


class MissingDependencyError(DependencyError):
    """Raised when a graph reference points at a key that has no definition."""

    def __init__(self, key: Any, dependency: Any):
        super().__init__(f"Missing definition for {dependency}, referenced by {key}")
        self.key = key
        self.dependency = dependency
