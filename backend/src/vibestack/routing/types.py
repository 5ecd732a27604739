"""Route configuration records consumed by the resource router factory.

Each exposed resource is described by one EntityRouteConfig. All
operations dispatch over these records; there is no per-entity subclassing.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from sqlalchemy import Column, Table

if TYPE_CHECKING:
    from vibestack.enrichers.types import EnricherContext

Row = dict[str, Any]
ListEnricherFn = Callable[["EnricherContext", list[Row]], list[Row]]
DetailEnricherFn = Callable[["EnricherContext", Row], Mapping[str, Any]]


def derive_fk_key(column_name: str) -> str:
    """Response key for an FK sub-object: "song_id" -> "song", "songId" -> "song"."""
    if column_name.endswith("_id") and len(column_name) > 3:
        return column_name[:-3]
    if column_name.endswith("Id") and len(column_name) > 2:
        return column_name[:-2]
    return f"{column_name}_ref"


@dataclass(frozen=True)
class ExtraFilter:
    param: str
    column: Column
    mode: str = "eq"  # "eq" | "like"


@dataclass(frozen=True)
class FkEnrichment:
    column: Column
    target: Table
    label: str = "name"

    @property
    def key(self) -> str:
        return derive_fk_key(self.column.name)


@dataclass(frozen=True)
class RelationshipConfig:
    slug: str
    pivot: Table
    related: Table
    parent_fk: Column
    related_fk: Column
    body_field: str
    assign_model: type[BaseModel]
    payload_columns: tuple[str, ...] = ()
    payload_model: type[BaseModel] | None = None

    @property
    def has_payload(self) -> bool:
        return bool(self.payload_columns)


@dataclass(frozen=True)
class EntityRouteConfig:
    context: str
    slug: str
    table: Table
    entity_name: str
    create_model: type[BaseModel]
    update_model: type[BaseModel]
    list_query_model: type[BaseModel]
    default_sort: Column
    default_order: str = "desc"
    sortable_columns: Mapping[str, Column] = field(default_factory=dict)
    context_column: Column | None = None
    context_value: str | None = None
    # Empty tuple means search is disabled
    search_columns: tuple[Column, ...] = ()
    extra_filters: tuple[ExtraFilter, ...] = ()
    fk_enrichments: tuple[FkEnrichment, ...] = ()
    relationships: tuple[RelationshipConfig, ...] = ()
    # Schema fields with declared defaults, persisted on create even when omitted
    create_defaults: tuple[str, ...] = ()
    list_enricher: ListEnricherFn | None = None
    detail_enricher: DetailEnricherFn | None = None

    @property
    def path(self) -> str:
        return f"/{self.context}/{self.slug}"

    @property
    def is_scoped(self) -> bool:
        return self.context_column is not None and self.context_value is not None

    def relationship(self, slug: str) -> RelationshipConfig | None:
        for rel in self.relationships:
            if rel.slug == slug:
                return rel
        return None
