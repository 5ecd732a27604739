"""Resolve loaded resource metadata into EntityRouteConfig records.

Every table, column, schema and enricher reference is checked here; an
unresolvable reference raises MetadataError since the resource cannot be
served without it.
"""

import logging
import re
from collections.abc import Mapping

from sqlalchemy import Column, Table

from vibestack.enrichers.registry import EnricherRegistry
from vibestack.metadata.loader import (
    MetadataError,
    MetadataLoader,
    RelationshipDefinition,
    ResourceDefinition,
    SchemaDefinition,
)
from vibestack.routing.schemas import (
    RESERVED_QUERY_PARAMS,
    build_assign_model,
    build_body_model,
    build_list_query_model,
    build_partial_model,
    build_update_model,
)
from vibestack.routing.types import (
    EntityRouteConfig,
    ExtraFilter,
    FkEnrichment,
    RelationshipConfig,
)

logger = logging.getLogger(__name__)


def _model_name(*parts: str) -> str:
    return "".join(p[:1].upper() + p[1:] for p in re.split(r"[^A-Za-z0-9]+", "-".join(parts)) if p)


class _Resolver:
    def __init__(self, loader: MetadataLoader, tables: Mapping[str, Table], resource: ResourceDefinition):
        self.loader = loader
        self.tables = tables
        self.resource = resource

    def fail(self, message: str) -> MetadataError:
        return MetadataError(f"Resource '{self.resource.path}': {message}")

    def table(self, name: str) -> Table:
        if name not in self.tables:
            raise self.fail(f"unknown table '{name}'")
        return self.tables[name]

    def column(self, table: Table, name: str) -> Column:
        if name not in table.c:
            raise self.fail(f"table '{table.name}' has no column '{name}'")
        return table.c[name]

    def schema(self, name: str) -> SchemaDefinition:
        schema = self.loader.get_schema(name)
        if schema is None:
            raise self.fail(f"unknown schema '{name}'")
        return schema

    def relationship(self, table: Table, rel: RelationshipDefinition) -> RelationshipConfig:
        pivot = self.table(rel.pivot)
        related = self.table(rel.related)
        parent_fk = self.column(pivot, rel.parent_fk)
        related_fk = self.column(pivot, rel.related_fk)
        for payload in rel.payload:
            self.column(pivot, payload.name)

        payload_columns = tuple(p.name for p in rel.payload)
        base = _model_name(self.resource.context, self.resource.slug, rel.slug)

        payload_model = None
        if rel.payload_schema is not None:
            schema = self.schema(rel.payload_schema)
            payload_model = build_partial_model(f"{base}Payload", schema.fields, with_archived=False)
        elif rel.payload:
            payload_model = build_partial_model(f"{base}Payload", rel.payload, with_archived=False)

        return RelationshipConfig(
            slug=rel.slug,
            pivot=pivot,
            related=related,
            parent_fk=parent_fk,
            related_fk=related_fk,
            body_field=rel.body_field,
            assign_model=build_assign_model(f"{base}Assign", rel.body_field, rel.payload),
            payload_columns=payload_columns,
            payload_model=payload_model,
        )

    def build(self) -> EntityRouteConfig:
        res = self.resource
        table = self.table(res.table)
        base = _model_name(res.context, res.slug)

        create_schema = self.schema(res.create_schema)
        update_schema = self.schema(res.update_schema) if res.update_schema else None

        sortable = {name: self.column(table, col) for name, col in res.sortable.items()}
        default_sort = self.column(table, res.default_sort)

        context_column = None
        if res.context_value is not None:
            context_column = self.column(table, res.context_column)

        search_columns = tuple(self.column(table, c) for c in (res.search_columns or []))

        extra_filters = []
        for flt in res.extra_filters:
            if flt.param in RESERVED_QUERY_PARAMS:
                raise self.fail(f"extra filter '{flt.param}' shadows a reserved query parameter")
            extra_filters.append(ExtraFilter(param=flt.param, column=self.column(table, flt.column), mode=flt.mode))

        fk_enrichments = []
        for fk in res.fk_enrichments:
            target = self.table(fk.table)
            self.column(target, fk.label)
            fk_enrichments.append(
                FkEnrichment(column=self.column(table, fk.column), target=target, label=fk.label)
            )

        slugs = [rel.slug for rel in res.relationships]
        if len(slugs) != len(set(slugs)):
            raise self.fail("duplicate relationship slug")

        try:
            list_fn = EnricherRegistry.get_list(res.list_enricher) if res.list_enricher else None
            detail_fn = EnricherRegistry.get_detail(res.detail_enricher) if res.detail_enricher else None
        except ValueError as exc:
            raise self.fail(str(exc)) from exc

        return EntityRouteConfig(
            context=res.context,
            slug=res.slug,
            table=table,
            entity_name=res.entity_name,
            create_model=build_body_model(f"{base}Create", create_schema.fields),
            update_model=build_update_model(f"{base}Update", create_schema, update_schema),
            list_query_model=build_list_query_model(f"{base}ListQuery", res.default_order, res.extra_filters),
            default_sort=default_sort,
            default_order=res.default_order,
            sortable_columns=sortable,
            context_column=context_column,
            context_value=res.context_value,
            search_columns=search_columns,
            extra_filters=tuple(extra_filters),
            fk_enrichments=tuple(fk_enrichments),
            relationships=tuple(self.relationship(table, rel) for rel in res.relationships),
            create_defaults=tuple(f.name for f in create_schema.fields if f.has_default),
            list_enricher=list_fn,
            detail_enricher=detail_fn,
        )


def build_route_configs(loader: MetadataLoader, tables: Mapping[str, Table]) -> list[EntityRouteConfig]:
    """Build one EntityRouteConfig per loaded resource, in declaration order."""
    configs = [_Resolver(loader, tables, res).build() for res in loader.list_resources()]
    logger.info("Built %d resource route config(s)", len(configs))
    return configs
