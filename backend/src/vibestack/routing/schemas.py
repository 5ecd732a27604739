"""Validation adapter: pydantic models generated from YAML schema definitions.

Request bodies are validated strictly (no "1" -> 1 coercion); list query
strings are validated in lax mode since every query value arrives as text.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from vibestack.core.types import MAX_INTEGER, get_field_type
from vibestack.metadata.loader import ExtraFilterDefinition, SchemaDefinition, SchemaField
from vibestack.routing.errors import FieldError, RequestValidationFailed

BODY_CONFIG = ConfigDict(strict=True, extra="ignore")
QUERY_CONFIG = ConfigDict(strict=False, extra="ignore")

RESERVED_QUERY_PARAMS = ("page", "pageSize", "sort", "order", "search", "archived")

# Keeps (page - 1) * pageSize inside the storage integer range at the largest page size
MAX_PAGE = MAX_INTEGER // 100


def _constraints(field: SchemaField | ExtraFilterDefinition) -> dict[str, Any]:
    rules = field.validation
    kwargs: dict[str, Any] = {}
    if rules.min_length is not None:
        kwargs["min_length"] = rules.min_length
    if rules.max_length is not None:
        kwargs["max_length"] = rules.max_length
    if rules.min is not None:
        kwargs["ge"] = rules.min
    if rules.max is not None:
        kwargs["le"] = rules.max
    if field.type == "integer":
        kwargs.setdefault("ge", -MAX_INTEGER - 1)
        kwargs.setdefault("le", MAX_INTEGER)
    if rules.pattern:
        kwargs["pattern"] = rules.pattern
    return kwargs


def _field_spec(field: SchemaField, *, optional: bool) -> tuple[Any, Any]:
    if field.options:
        annotation: Any = Literal[tuple(field.options)]
        kwargs: dict[str, Any] = {}
    else:
        annotation = get_field_type(field.type).python_type
        kwargs = _constraints(field)

    if field.nullable:
        annotation = annotation | None
    if field.message:
        kwargs["json_schema_extra"] = {"patternMessage": field.message}

    if optional:
        default: Any = None
    elif field.validation.required:
        default = ...
    elif field.has_default:
        default = field.default
    else:
        default = None

    return annotation, Field(default, **kwargs)


def build_body_model(name: str, fields: Iterable[SchemaField]) -> type[BaseModel]:
    """Model for a create-style body: required fields enforced, defaults applied."""
    specs = {f.name: _field_spec(f, optional=False) for f in fields}
    return create_model(name, __config__=BODY_CONFIG, **specs)


def build_partial_model(
    name: str,
    fields: Iterable[SchemaField],
    *,
    with_archived: bool = True,
    keep_required: bool = False,
) -> type[BaseModel]:
    """Every field optional (unless keep_required); only supplied fields are persisted."""
    specs = {
        f.name: _field_spec(f, optional=not (keep_required and f.validation.required))
        for f in fields
    }
    if with_archived:
        specs["archived"] = (bool, Field(None))
    return create_model(name, __config__=BODY_CONFIG, **specs)


def build_update_model(
    name: str,
    create_schema: SchemaDefinition,
    update_schema: SchemaDefinition | None = None,
) -> type[BaseModel]:
    """Explicit update schema as declared, or the create schema made partial plus archived."""
    if update_schema is not None:
        return build_partial_model(name, update_schema.fields, with_archived=False, keep_required=True)
    return build_partial_model(name, create_schema.fields)


def build_assign_model(
    name: str,
    body_field: str,
    payload: Iterable[SchemaField] = (),
) -> type[BaseModel]:
    specs: dict[str, Any] = {body_field: (int, Field(..., gt=0, le=MAX_INTEGER))}
    for f in payload:
        specs[f.name] = _field_spec(f, optional=not f.validation.required)
    return create_model(name, __config__=BODY_CONFIG, **specs)


def build_list_query_model(
    name: str,
    default_order: str,
    extra_filters: Iterable[ExtraFilterDefinition] = (),
) -> type[BaseModel]:
    specs: dict[str, Any] = {
        "page": (int, Field(1, ge=1, le=MAX_PAGE)),
        "pageSize": (int, Field(25, ge=1, le=100)),
        "sort": (str | None, Field(None)),
        "order": (Literal["asc", "desc"], Field(default_order)),
        "search": (str | None, Field(None)),
        "archived": (bool | None, Field(None)),
    }
    for flt in extra_filters:
        specs[flt.param] = (get_field_type(flt.type).python_type | None, Field(None, **_constraints(flt)))
    return create_model(name, __config__=QUERY_CONFIG, **specs)


def to_field_errors(exc: ValidationError, model: type[BaseModel] | None = None) -> list[FieldError]:
    """Flatten pydantic errors into FieldError records."""
    errors = []
    for err in exc.errors():
        field_name = ".".join(str(p) for p in err["loc"])
        message = err["msg"]
        if model is not None and err["type"] == "string_pattern_mismatch":
            info = model.model_fields.get(field_name)
            extra = info.json_schema_extra if info is not None else None
            if isinstance(extra, dict) and extra.get("patternMessage"):
                message = str(extra["patternMessage"])
        errors.append(FieldError(field=field_name, message=message, code=err["type"]))
    return errors


def parse_body(model: type[BaseModel], body: Any) -> BaseModel:
    """Validate a JSON body or raise RequestValidationFailed."""
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise RequestValidationFailed(to_field_errors(exc, model)) from exc


def parse_query(model: type[BaseModel], params: Mapping[str, str]) -> BaseModel:
    """Validate query parameters; empty values count as absent."""
    data = {key: value for key, value in params.items() if value != ""}
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationFailed(to_field_errors(exc, model)) from exc


def body_values(instance: BaseModel, defaults: Iterable[str] = ()) -> dict[str, Any]:
    """Fields the caller supplied, plus any named fields that carry a declared default."""
    values = instance.model_dump(exclude_unset=True)
    for name in defaults:
        if name not in values:
            values[name] = getattr(instance, name)
    return values
