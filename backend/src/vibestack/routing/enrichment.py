"""Foreign-key enrichment: expand stored FK ids into {id, name} sub-objects.

List mode issues one IN lookup per FK column for the whole page. Detail
mode issues one point lookup per FK column. A null or dangling FK always
yields an explicit None under the derived key.
"""

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import Connection, select

from vibestack.routing.types import FkEnrichment, Row

logger = logging.getLogger(__name__)


def _label_map(conn: Connection, enrichment: FkEnrichment, ids: Iterable[Any]) -> dict[Any, Row]:
    target = enrichment.target
    id_list = list(ids)
    if not id_list:
        return {}
    stmt = select(target.c.id, target.c[enrichment.label]).where(target.c.id.in_(id_list))
    return {
        row_id: {"id": row_id, "name": label}
        for row_id, label in conn.execute(stmt)
    }


def enrich_rows(conn: Connection, rows: list[Row], enrichments: Iterable[FkEnrichment]) -> list[Row]:
    """Batch mode: one lookup per FK column across all rows."""
    enrichments = list(enrichments)
    if not enrichments or not rows:
        return rows

    result = [dict(row) for row in rows]
    for enrichment in enrichments:
        column = enrichment.column.name
        ids = {row.get(column) for row in result if row.get(column) is not None}
        lookup = _label_map(conn, enrichment, ids)
        logger.debug(
            "FK enrichment %s -> %s: %d id(s), %d found",
            column,
            enrichment.target.name,
            len(ids),
            len(lookup),
        )
        for row in result:
            value = row.get(column)
            row[enrichment.key] = lookup.get(value) if value is not None else None
    return result


def enrich_row(conn: Connection, row: Row, enrichments: Iterable[FkEnrichment]) -> Row:
    """Detail mode: one point lookup per FK column."""
    result = dict(row)
    for enrichment in enrichments:
        value = result.get(enrichment.column.name)
        if value is None:
            result[enrichment.key] = None
            continue
        target = enrichment.target
        found = conn.execute(
            select(target.c.id, target.c[enrichment.label]).where(target.c.id == value)
        ).first()
        result[enrichment.key] = {"id": found[0], "name": found[1]} if found else None
    return result
