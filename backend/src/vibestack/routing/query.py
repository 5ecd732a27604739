"""Predicate and query builder for list and point lookups.

The page query and the count query are both derived from one ListPlan so
they always observe the same predicate set.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel
from sqlalchemy import ColumnElement, Connection, Select, func, or_, select

from vibestack.routing.errors import EntityNotFound
from vibestack.routing.types import EntityRouteConfig, Row


@dataclass
class ListQuery:
    page: int = 1
    page_size: int = 25
    sort: str | None = None
    order: str = "desc"
    search: str | None = None
    archived: bool | None = None
    filters: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_model(cls, config: EntityRouteConfig, parsed: BaseModel) -> "ListQuery":
        return cls(
            page=parsed.page,
            page_size=parsed.pageSize,
            sort=parsed.sort,
            order=parsed.order,
            search=parsed.search,
            archived=parsed.archived,
            filters={f.param: getattr(parsed, f.param) for f in config.extra_filters},
        )


@dataclass
class ListPlan:
    conditions: list[ColumnElement[bool]]
    order_by: list[ColumnElement]
    limit: int
    offset: int


def scope_conditions(config: EntityRouteConfig) -> list[ColumnElement[bool]]:
    """Context-scope equality, when the resource is scoped."""
    if config.is_scoped:
        return [config.context_column == config.context_value]
    return []


def build_list_plan(config: EntityRouteConfig, query: ListQuery) -> ListPlan:
    table = config.table
    conditions = scope_conditions(config)

    if query.archived is not None and "archived" in table.c:
        conditions.append(table.c.archived == query.archived)

    if query.search and config.search_columns:
        conditions.append(
            or_(*[col.icontains(query.search, autoescape=True) for col in config.search_columns])
        )

    for flt in config.extra_filters:
        value = query.filters.get(flt.param)
        if value is None or value == "":
            continue
        if flt.mode == "like":
            conditions.append(flt.column.icontains(str(value), autoescape=True))
        else:
            conditions.append(flt.column == value)

    sort_column = config.sortable_columns.get(query.sort or "", config.default_sort)
    direction = "asc" if query.order == "asc" else "desc"
    order_by = [getattr(sort_column, direction)()]
    # id tie-breaker keeps page boundaries stable when sort values repeat
    if "id" in table.c and sort_column is not table.c.id:
        order_by.append(getattr(table.c.id, direction)())

    return ListPlan(
        conditions=conditions,
        order_by=order_by,
        limit=query.page_size,
        offset=(query.page - 1) * query.page_size,
    )


def select_page(config: EntityRouteConfig, plan: ListPlan) -> Select:
    return (
        select(config.table)
        .where(*plan.conditions)
        .order_by(*plan.order_by)
        .limit(plan.limit)
        .offset(plan.offset)
    )


def select_count(config: EntityRouteConfig, plan: ListPlan) -> Select:
    return select(func.count()).select_from(config.table).where(*plan.conditions)


def select_entity(config: EntityRouteConfig, entity_id: int) -> Select:
    """Point lookup by primary key, within the resource's context scope."""
    table = config.table
    return select(table).where(table.c.id == entity_id, *scope_conditions(config))


def fetch_entity(conn: Connection, config: EntityRouteConfig, entity_id: int) -> Row:
    """Scoped row for entity_id; a row outside the context scope counts as missing."""
    row = conn.execute(select_entity(config, entity_id)).mappings().first()
    if row is None:
        raise EntityNotFound(config.entity_name)
    return dict(row)
