"""Typed failures raised by resource operations.

Each exception carries its HTTP status; api.exception_handlers maps them
to JSON responses of the form {"error": message, ...}.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class FieldError:
    """A single field-level validation failure."""

    field: str
    message: str
    code: str

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "message": self.message, "code": self.code}


class ResourceError(Exception):
    """Base class for failures surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class RequestValidationFailed(ResourceError):
    """Query or body did not satisfy the declared schema."""

    status_code = 400

    def __init__(self, errors: list[FieldError], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "errors": [e.to_dict() for e in self.errors]}


class EntityNotFound(ResourceError):
    status_code = 404

    def __init__(self, entity_name: str):
        super().__init__(f"{entity_name} not found")
        self.entity_name = entity_name


class RelatedEntityNotFound(ResourceError):
    status_code = 404

    def __init__(self) -> None:
        super().__init__("Related entity not found")


class AssignmentNotFound(ResourceError):
    status_code = 404

    def __init__(self) -> None:
        super().__init__("Assignment not found")


class AlreadyAssigned(ResourceError):
    status_code = 409

    def __init__(self) -> None:
        super().__init__("Already assigned")
