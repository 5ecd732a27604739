"""Load and resolve table, schema, and resource metadata from YAML files."""

from pathlib import Path
from dataclasses import dataclass, field
from typing import Any
import logging

import yaml

logger = logging.getLogger(__name__)

# Marker for "key not present" where None is a meaningful YAML value
_MISSING = object()


class MetadataError(ValueError):
    """Raised when metadata cannot be resolved into a servable registry."""


@dataclass
class ColumnDefinition:
    name: str
    type: str
    nullable: bool = True
    default: Any = None
    primary_key: bool = False
    unique: bool = False
    references: str | None = None  # "table.column"


@dataclass
class TableDefinition:
    name: str
    columns: list[ColumnDefinition]
    kind: str = "entity"  # "entity" | "pivot"
    unique: list[list[str]] = field(default_factory=list)

    def column(self, name: str) -> ColumnDefinition | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]


@dataclass
class ValidationRules:
    required: bool = False
    min: float | None = None
    max: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None


@dataclass
class SchemaField:
    name: str
    type: str
    nullable: bool = False
    default: Any = None
    has_default: bool = False
    options: list[Any] | None = None
    message: str | None = None  # Custom message for pattern failures
    validation: ValidationRules = field(default_factory=ValidationRules)


@dataclass
class SchemaDefinition:
    name: str
    fields: list[SchemaField]


@dataclass
class ExtraFilterDefinition:
    param: str
    column: str
    mode: str = "eq"  # "eq" | "like"
    type: str = "string"
    validation: ValidationRules = field(default_factory=ValidationRules)


@dataclass
class FkEnrichmentDefinition:
    column: str
    table: str
    label: str = "name"


@dataclass
class RelationshipDefinition:
    slug: str
    pivot: str
    related: str
    parent_fk: str
    related_fk: str
    body_field: str
    payload: list[SchemaField] = field(default_factory=list)
    payload_schema: str | None = None


@dataclass
class ResourceDefinition:
    context: str
    slug: str
    table: str
    entity_name: str
    create_schema: str
    update_schema: str | None = None
    default_sort: str = "created_at"
    default_order: str = "desc"
    sortable: dict[str, str] = field(default_factory=dict)
    context_value: str | None = None
    context_column: str = "context"
    # None disables search; an empty list does too
    search_columns: list[str] | None = field(default_factory=lambda: ["name"])
    extra_filters: list[ExtraFilterDefinition] = field(default_factory=list)
    fk_enrichments: list[FkEnrichmentDefinition] = field(default_factory=list)
    relationships: list[RelationshipDefinition] = field(default_factory=list)
    list_enricher: str | None = None
    detail_enricher: str | None = None
    source: Path | None = None

    @property
    def path(self) -> str:
        return f"/{self.context}/{self.slug}"


def _resolve_rules(data: dict) -> ValidationRules:
    return ValidationRules(
        required=data.get("required", False),
        min=data.get("min"),
        max=data.get("max"),
        min_length=data.get("minLength"),
        max_length=data.get("maxLength"),
        pattern=data.get("pattern"),
    )


def resolve_schema_field(data: dict) -> SchemaField:
    """Convert a YAML field mapping into a SchemaField."""
    return SchemaField(
        name=data["name"],
        type=data.get("type", "string"),
        nullable=data.get("nullable", False),
        default=data.get("default"),
        has_default="default" in data,
        options=data.get("options"),
        message=data.get("message"),
        validation=_resolve_rules(data),
    )


class MetadataLoader:
    """Loads block, table, schema and resource definitions from YAML files."""

    def __init__(self, metadata_path: Path):
        self.metadata_path = metadata_path
        self.blocks: dict[str, list[dict]] = {}
        self.tables: dict[str, TableDefinition] = {}
        self.schemas: dict[str, SchemaDefinition] = {}
        self.resources: list[ResourceDefinition] = []

    def load_all(self) -> None:
        """Load all blocks, tables, schemas and resources."""
        self._load_blocks()
        self._load_tables()
        self._load_schemas()
        self._load_resources()
        self._check_unique_paths()
        logger.info(
            "Loaded metadata: %d table(s), %d schema(s), %d resource(s)",
            len(self.tables),
            len(self.schemas),
            len(self.resources),
        )

    def get_table(self, name: str) -> TableDefinition | None:
        return self.tables.get(name)

    def get_schema(self, name: str) -> SchemaDefinition | None:
        return self.schemas.get(name)

    def list_tables(self) -> list[TableDefinition]:
        return list(self.tables.values())

    def list_resources(self) -> list[ResourceDefinition]:
        return list(self.resources)

    def _yaml_files(self, subdir: str) -> list[Path]:
        path = self.metadata_path / subdir
        if not path.exists():
            return []
        return sorted(path.glob("*.yaml"))

    def _load_blocks(self) -> None:
        """Load reusable field groups."""
        for yaml_file in self._yaml_files("blocks"):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
                if data and "block" in data:
                    self.blocks[data["block"]] = data.get("fields", [])

    def _load_tables(self) -> None:
        for yaml_file in self._yaml_files("tables"):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
                if data and "table" in data:
                    table = self._resolve_table(data)
                    self.tables[table.name] = table

    def _load_schemas(self) -> None:
        for yaml_file in self._yaml_files("schemas"):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
                if data and "schema" in data:
                    schema = SchemaDefinition(
                        name=data["schema"],
                        fields=[resolve_schema_field(fd) for fd in data.get("fields", [])],
                    )
                    self.schemas[schema.name] = schema

    def _load_resources(self) -> None:
        for yaml_file in self._yaml_files("resources"):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
            if not data or "context" not in data:
                continue
            context = data["context"]
            context_value = data.get("contextValue")
            for raw in data.get("resources", []):
                self.resources.append(
                    self._resolve_resource(raw, context, context_value, yaml_file)
                )

    def _resolve_table(self, data: dict) -> TableDefinition:
        """Resolve a table definition, expanding blocks."""
        all_fields: list[dict] = []

        for include in data.get("includes", []):
            block_name = include["block"]
            if block_name not in self.blocks:
                raise MetadataError(
                    f"Table '{data['table']}' includes unknown block '{block_name}'"
                )
            all_fields.extend(dict(f) for f in self.blocks[block_name])

        all_fields.extend(data.get("fields", []))

        columns = [
            ColumnDefinition(
                name=f["name"],
                type=f.get("type", "string"),
                nullable=f.get("nullable", not f.get("primaryKey", False)),
                default=f.get("default"),
                primary_key=f.get("primaryKey", False),
                unique=f.get("unique", False),
                references=f.get("references"),
            )
            for f in all_fields
        ]

        return TableDefinition(
            name=data["table"],
            columns=columns,
            kind=data.get("kind", "entity"),
            unique=data.get("unique", []),
        )

    def _resolve_resource(
        self,
        data: dict,
        context: str,
        context_value: str | None,
        source: Path,
    ) -> ResourceDefinition:
        search = data.get("searchColumns", _MISSING)
        if search is _MISSING:
            search = [data.get("nameColumn", "name")]

        relationships = [
            RelationshipDefinition(
                slug=rel["slug"],
                pivot=rel["pivot"],
                related=rel["related"],
                parent_fk=rel["parentFk"],
                related_fk=rel["relatedFk"],
                body_field=rel["bodyField"],
                payload=[resolve_schema_field(p) for p in rel.get("payload", [])],
                payload_schema=rel.get("payloadSchema"),
            )
            for rel in data.get("relationships", [])
        ]

        extra_filters = [
            ExtraFilterDefinition(
                param=flt["param"],
                column=flt.get("column", flt["param"]),
                mode=flt.get("mode", "eq"),
                type=flt.get("type", "string"),
                validation=_resolve_rules(flt),
            )
            for flt in data.get("extraFilters", [])
        ]

        fk_enrichments = [
            FkEnrichmentDefinition(
                column=fk["column"],
                table=fk["table"],
                label=fk.get("label", "name"),
            )
            for fk in data.get("fkEnrichments", [])
        ]

        return ResourceDefinition(
            context=context,
            slug=data["slug"],
            table=data["table"],
            entity_name=data["entityName"],
            create_schema=data["createSchema"],
            update_schema=data.get("updateSchema"),
            default_sort=data.get("defaultSort", "created_at"),
            default_order=data.get("defaultOrder", "desc"),
            sortable=dict(data.get("sortableColumns", {})),
            context_value=data.get("contextValue", context_value),
            context_column=data.get("contextColumn", "context"),
            search_columns=search,
            extra_filters=extra_filters,
            fk_enrichments=fk_enrichments,
            relationships=relationships,
            list_enricher=data.get("listEnricher"),
            detail_enricher=data.get("detailEnricher"),
            source=source,
        )

    def _check_unique_paths(self) -> None:
        seen: dict[str, Path | None] = {}
        for resource in self.resources:
            if resource.path in seen:
                raise MetadataError(
                    f"Duplicate resource path '{resource.path}' in "
                    f"'{seen[resource.path]}' and '{resource.source}'"
                )
            seen[resource.path] = resource.source
