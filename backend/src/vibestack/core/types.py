"""Column type registry mapping metadata type names to storage types."""

from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import Boolean, Float, Integer, String, Text
from sqlalchemy.types import TypeEngine


@dataclass
class FieldType:
    name: str
    storage_type: type[TypeEngine]
    python_type: type


# Built-in field types
FIELD_TYPES: dict[str, FieldType] = {
    "id": FieldType(name="id", storage_type=Integer, python_type=int),  # Autoincrement surrogate key
    "integer": FieldType(name="integer", storage_type=Integer, python_type=int),
    "number": FieldType(name="number", storage_type=Float, python_type=float),
    "string": FieldType(name="string", storage_type=String, python_type=str),
    "text": FieldType(name="text", storage_type=Text, python_type=str),
    "boolean": FieldType(name="boolean", storage_type=Boolean, python_type=bool),
    "timestamp": FieldType(name="timestamp", storage_type=String, python_type=str),  # ISO-8601 text, sorts lexically
}


def get_field_type(type_name: str) -> FieldType:
    """Get field type definition.

    Raises:
        ValueError: If the type name is not registered
    """
    if type_name not in FIELD_TYPES:
        raise ValueError(
            f"Unknown field type '{type_name}'. "
            f"Expected one of: {', '.join(sorted(FIELD_TYPES))}"
        )
    return FIELD_TYPES[type_name]


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(UTC).isoformat()


# Largest value a 64-bit signed storage integer holds (SQLite INTEGER, BIGINT)
MAX_INTEGER = 2**63 - 1
