"""Relationship manager for pivot-table edges.

An edge is keyed by (parent id, related id). The pivot table's uniqueness
constraint is the arbiter of "already assigned": the pre-check only avoids
a failed insert in the common case, and an IntegrityError from the insert
is reported as the same conflict.
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Connection, delete, insert, select, update
from sqlalchemy.exc import IntegrityError

from vibestack.routing.errors import (
    AlreadyAssigned,
    AssignmentNotFound,
    FieldError,
    RelatedEntityNotFound,
    RequestValidationFailed,
)
from vibestack.routing.query import fetch_entity
from vibestack.routing.schemas import body_values, parse_body
from vibestack.routing.types import EntityRouteConfig, RelationshipConfig, Row

logger = logging.getLogger(__name__)

# Carries pivot payload columns through the join without colliding with
# identically named related-entity columns.
PAYLOAD_PREFIX = "__payload__"


def _edge_filter(rel: RelationshipConfig, parent_id: int, related_id: int) -> list:
    return [rel.parent_fk == parent_id, rel.related_fk == related_id]


def find_assignment(
    conn: Connection,
    rel: RelationshipConfig,
    parent_id: int,
    related_id: int,
) -> Row | None:
    row = (
        conn.execute(select(rel.pivot).where(*_edge_filter(rel, parent_id, related_id)))
        .mappings()
        .first()
    )
    return dict(row) if row is not None else None


def names_payload(rel: RelationshipConfig, body: Any) -> bool:
    """True when the body names at least one declared payload column."""
    return (
        rel.has_payload
        and isinstance(body, Mapping)
        and any(name in body for name in rel.payload_columns)
    )


def assign(
    conn: Connection,
    config: EntityRouteConfig,
    rel: RelationshipConfig,
    parent_id: int,
    body: Any,
) -> Row:
    """Create the edge (parent_id, body[body_field]) with any declared payload values."""
    fetch_entity(conn, config, parent_id)

    parsed = parse_body(rel.assign_model, body)
    related_id = getattr(parsed, rel.body_field)

    # Related lookup is global, not context scoped
    related = rel.related
    if conn.execute(select(related.c.id).where(related.c.id == related_id)).first() is None:
        raise RelatedEntityNotFound()

    if find_assignment(conn, rel, parent_id, related_id) is not None:
        raise AlreadyAssigned()

    values = {
        name: value
        for name, value in body_values(parsed).items()
        if name in rel.payload_columns
    }
    values[rel.parent_fk.name] = parent_id
    values[rel.related_fk.name] = related_id

    try:
        row = conn.execute(insert(rel.pivot).values(**values).returning(*rel.pivot.c)).mappings().one()
    except IntegrityError as exc:
        logger.info(
            "Concurrent assignment of %s %s/%s %s resolved as conflict: %s",
            config.entity_name,
            parent_id,
            rel.slug,
            related_id,
            exc.orig,
        )
        raise AlreadyAssigned() from exc

    logger.info("Assigned %s %s -> %s %s", config.entity_name, parent_id, rel.slug, related_id)
    return dict(row)


def update_payload(
    conn: Connection,
    config: EntityRouteConfig,
    rel: RelationshipConfig,
    parent_id: int,
    related_id: int,
    body: Any,
) -> Row:
    """Apply a partial payload update to an existing edge."""
    fetch_entity(conn, config, parent_id)
    if find_assignment(conn, rel, parent_id, related_id) is None:
        raise AssignmentNotFound()

    if rel.payload_model is None:
        raise RequestValidationFailed(
            [FieldError(field="", message=f"Relationship '{rel.slug}' has no payload fields", code="no_payload")]
        )

    parsed = parse_body(rel.payload_model, body)
    values = {
        name: value
        for name, value in body_values(parsed).items()
        if name in rel.payload_columns
    }
    if not values:
        raise RequestValidationFailed(
            [
                FieldError(
                    field="",
                    message=f"Body must include at least one of: {', '.join(rel.payload_columns)}",
                    code="missing_payload",
                )
            ]
        )

    row = (
        conn.execute(
            update(rel.pivot)
            .where(*_edge_filter(rel, parent_id, related_id))
            .values(**values)
            .returning(*rel.pivot.c)
        )
        .mappings()
        .one()
    )
    logger.info("Updated %s %s -> %s %s payload", config.entity_name, parent_id, rel.slug, related_id)
    return dict(row)


def remove(
    conn: Connection,
    config: EntityRouteConfig,
    rel: RelationshipConfig,
    parent_id: int,
    related_id: int,
) -> None:
    """Hard-delete the edge."""
    fetch_entity(conn, config, parent_id)
    if find_assignment(conn, rel, parent_id, related_id) is None:
        raise AssignmentNotFound()
    conn.execute(delete(rel.pivot).where(*_edge_filter(rel, parent_id, related_id)))
    logger.info("Removed %s %s -> %s %s", config.entity_name, parent_id, rel.slug, related_id)


def load_related(conn: Connection, rel: RelationshipConfig, parent_id: int) -> list[Row]:
    """Related rows joined through the pivot, with payload columns merged on top."""
    related = rel.related
    columns = [*related.c] + [
        rel.pivot.c[name].label(f"{PAYLOAD_PREFIX}{name}") for name in rel.payload_columns
    ]
    stmt = (
        select(*columns)
        .select_from(related.join(rel.pivot, rel.related_fk == related.c.id))
        .where(rel.parent_fk == parent_id)
        .order_by(related.c.id)
    )

    results = []
    for row in conn.execute(stmt).mappings():
        item: Row = {}
        payload: Row = {}
        for key, value in row.items():
            if key.startswith(PAYLOAD_PREFIX):
                payload[key[len(PAYLOAD_PREFIX):]] = value
            else:
                item[key] = value
        item.update(payload)
        results.append(item)
    return results
