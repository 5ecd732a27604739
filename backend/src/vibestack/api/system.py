"""Health, dashboard and resource-listing endpoints."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter
from sqlalchemy import func, select

from vibestack.persistence.database import Database
from vibestack.routing.query import scope_conditions
from vibestack.routing.types import EntityRouteConfig


def create_system_router(
    get_database: Callable[[], Database],
    get_resources: Callable[[], list[EntityRouteConfig]],
) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}

    @router.get("/dashboard/stats")
    def dashboard_stats() -> dict[str, dict[str, int]]:
        """Record counts per resource, grouped by context, each scoped to its context value."""
        stats: dict[str, dict[str, int]] = {}
        with get_database().begin() as conn:
            for config in get_resources():
                stmt = select(func.count()).select_from(config.table).where(*scope_conditions(config))
                stats.setdefault(config.context, {})[config.slug] = conn.execute(stmt).scalar_one()
        return stats

    @router.get("/metadata/resources")
    def list_resources() -> list[dict[str, Any]]:
        return [
            {
                "context": config.context,
                "slug": config.slug,
                "path": f"/api{config.path}",
                "entityName": config.entity_name,
                "sortableColumns": sorted(config.sortable_columns),
                "searchable": bool(config.search_columns),
                "filters": [f.param for f in config.extra_filters],
                "relationships": [
                    {"slug": rel.slug, "bodyField": rel.body_field, "payload": list(rel.payload_columns)}
                    for rel in config.relationships
                ],
            }
            for config in get_resources()
        ]

    return router
