"""Resource router factory.

create_entity_router() turns one EntityRouteConfig into a FastAPI router
with list/create/read/update plus the relationship sub-routes:

    GET    /{context}/{slug}
    POST   /{context}/{slug}
    GET    /{context}/{slug}/{id}
    PUT    /{context}/{slug}/{id}
    POST   /{context}/{slug}/{id}/{rel}
    PATCH  /{context}/{slug}/{id}/{rel}/{relatedId}   payload update
    DELETE /{context}/{slug}/{id}/{rel}/{relatedId}   removal
    PUT    /{context}/{slug}/{id}/{rel}/{relatedId}   legacy, decided by body shape
"""

import logging
from collections.abc import Callable
from typing import Annotated, Any

from fastapi import APIRouter, Body, Path, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy import insert, update

from vibestack.core.types import MAX_INTEGER, utc_now
from vibestack.enrichers.types import EnricherContext
from vibestack.persistence.database import Database
from vibestack.routing import relationships
from vibestack.routing.enrichment import enrich_row, enrich_rows
from vibestack.routing.query import (
    ListQuery,
    build_list_plan,
    fetch_entity,
    scope_conditions,
    select_count,
    select_page,
)
from vibestack.routing.schemas import body_values, parse_body, parse_query
from vibestack.routing.types import EntityRouteConfig, RelationshipConfig, Row

logger = logging.getLogger(__name__)

# Ids beyond the storage integer range are rejected as validation errors
EntityId = Annotated[int, Path(le=MAX_INTEGER)]


def _operation_prefix(config: EntityRouteConfig) -> str:
    return f"{config.context}_{config.slug}".replace("-", "_")


def create_entity_router(
    config: EntityRouteConfig,
    get_database: Callable[[], Database],
    *,
    legacy_put: bool = True,
) -> APIRouter:
    """Build the router for one resource.

    Args:
        config: Resolved route configuration
        get_database: Returns the connected Database at request time
        legacy_put: Register the body-shape PUT on relationship edges
    """
    router = APIRouter(prefix=config.path, tags=[config.context])
    table = config.table
    op = _operation_prefix(config)

    @router.get("", operation_id=f"{op}_list")
    def list_entities(request: Request) -> dict[str, Any]:
        parsed = parse_query(config.list_query_model, request.query_params)
        query = ListQuery.from_model(config, parsed)
        plan = build_list_plan(config, query)

        db = get_database()
        with db.begin() as conn:
            rows = [dict(r) for r in conn.execute(select_page(config, plan)).mappings()]
            total = conn.execute(select_count(config, plan)).scalar_one()
            rows = enrich_rows(conn, rows, config.fk_enrichments)
            if config.list_enricher is not None:
                rows = config.list_enricher(EnricherContext(conn, db.tables, config), rows)

        logger.debug("List %s page=%d size=%d total=%d", config.path, query.page, query.page_size, total)
        return {"data": rows, "total": total, "page": query.page, "pageSize": query.page_size}

    @router.post("", status_code=201, operation_id=f"{op}_create")
    def create_entity(body: Any = Body(default=None)) -> JSONResponse:
        parsed = parse_body(config.create_model, body)
        values = body_values(parsed, config.create_defaults)
        if config.is_scoped:
            values[config.context_column.name] = config.context_value

        with get_database().begin() as conn:
            row = conn.execute(insert(table).values(**values).returning(*table.c)).mappings().one()

        logger.info("Created %s %s in %s", config.entity_name, row["id"], config.path)
        return JSONResponse(status_code=201, content=jsonable_encoder(dict(row)))

    @router.get("/{entity_id}", operation_id=f"{op}_get")
    def get_entity(entity_id: EntityId) -> dict[str, Any]:
        db = get_database()
        with db.begin() as conn:
            row = fetch_entity(conn, config, entity_id)
            result = enrich_row(conn, row, config.fk_enrichments)

            extras: Row = {}
            if config.detail_enricher is not None:
                extras = dict(config.detail_enricher(EnricherContext(conn, db.tables, config), result))

            # Enricher output wins on key collision
            for rel in config.relationships:
                if rel.has_payload and rel.slug not in extras:
                    extras[rel.slug] = relationships.load_related(conn, rel, entity_id)

        return {**result, **extras}

    @router.put("/{entity_id}", operation_id=f"{op}_update")
    def update_entity(entity_id: EntityId, body: Any = Body(default=None)) -> dict[str, Any]:
        with get_database().begin() as conn:
            fetch_entity(conn, config, entity_id)
            parsed = parse_body(config.update_model, body)
            values = body_values(parsed)
            if "updated_at" in table.c:
                values["updated_at"] = utc_now()

            row = (
                conn.execute(
                    update(table)
                    .where(table.c.id == entity_id, *scope_conditions(config))
                    .values(**values)
                    .returning(*table.c)
                )
                .mappings()
                .one()
            )

        logger.info("Updated %s %s fields=%s", config.entity_name, entity_id, sorted(values))
        return dict(row)

    for rel in config.relationships:
        _add_relationship_routes(router, config, rel, get_database, legacy_put=legacy_put)

    return router


def _add_relationship_routes(
    router: APIRouter,
    config: EntityRouteConfig,
    rel: RelationshipConfig,
    get_database: Callable[[], Database],
    *,
    legacy_put: bool,
) -> None:
    op = f"{_operation_prefix(config)}_{rel.slug.replace('-', '_')}"
    edge_path = f"/{{entity_id}}/{rel.slug}/{{related_id}}"

    @router.post(f"/{{entity_id}}/{rel.slug}", status_code=201, operation_id=f"{op}_assign")
    def assign(entity_id: EntityId, body: Any = Body(default=None)) -> JSONResponse:
        with get_database().begin() as conn:
            row = relationships.assign(conn, config, rel, entity_id, body)
        return JSONResponse(status_code=201, content=jsonable_encoder(row))

    @router.patch(edge_path, operation_id=f"{op}_update")
    def update_assignment(entity_id: EntityId, related_id: EntityId, body: Any = Body(default=None)) -> dict[str, Any]:
        with get_database().begin() as conn:
            row = relationships.update_payload(conn, config, rel, entity_id, related_id, body)
        return {"message": "Assignment updated", "data": row}

    @router.delete(edge_path, operation_id=f"{op}_remove")
    def remove_assignment(entity_id: EntityId, related_id: EntityId) -> dict[str, Any]:
        with get_database().begin() as conn:
            relationships.remove(conn, config, rel, entity_id, related_id)
        return {"message": "Assignment removed"}

    if not legacy_put:
        return

    @router.put(edge_path, operation_id=f"{op}_legacy_put", deprecated=True)
    def legacy_update_or_remove(entity_id: EntityId, related_id: EntityId, body: Any = Body(default=None)) -> dict[str, Any]:
        if relationships.names_payload(rel, body):
            logger.warning(
                "Deprecated PUT %s/%s/%s/%s resolved to payload update; use PATCH",
                config.path,
                entity_id,
                rel.slug,
                related_id,
            )
            return update_assignment(entity_id, related_id, body)

        logger.warning(
            "Deprecated PUT %s/%s/%s/%s resolved to removal; use DELETE",
            config.path,
            entity_id,
            rel.slug,
            related_id,
        )
        return remove_assignment(entity_id, related_id)
