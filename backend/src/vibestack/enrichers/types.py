"""Enricher context passed to custom list and detail enrichers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import Connection, Table

if TYPE_CHECKING:
    from vibestack.routing.types import EntityRouteConfig


@dataclass
class EnricherContext:
    """Everything an enricher may touch during one request.

    Attributes:
        conn: Connection for the current request's unit of work
        tables: All declared tables, keyed by table name
        config: Route configuration of the resource being served
    """

    conn: Connection
    tables: Mapping[str, Table]
    config: EntityRouteConfig
