"""SQLAlchemy Core database built from table metadata.

Tables are declared from YAML table definitions at startup; the engine is
created lazily on connect() so definitions can be inspected (CLI, route
building) without touching storage.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import (
    Column,
    Connection,
    Engine,
    ForeignKey,
    MetaData,
    Table,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.pool import StaticPool

from vibestack.core.types import get_field_type, utc_now
from vibestack.metadata.loader import ColumnDefinition, MetadataError, TableDefinition
from vibestack.persistence.config import DatabaseConfig

logger = logging.getLogger(__name__)


def _build_column(col: ColumnDefinition) -> Column:
    field_type = get_field_type(col.type)
    args: list = [col.name, field_type.storage_type()]
    if col.references:
        args.append(ForeignKey(col.references))

    kwargs: dict = {
        "primary_key": col.primary_key,
        "nullable": col.nullable and not col.primary_key,
        "unique": col.unique or None,
    }
    if col.type == "id":
        kwargs["autoincrement"] = True
    elif col.primary_key:
        kwargs["autoincrement"] = False

    if col.type == "timestamp" and col.default == "now":
        kwargs["default"] = utc_now
    elif col.default is not None:
        kwargs["default"] = col.default

    return Column(*args, **kwargs)


class Database:
    """Owns the SQLAlchemy engine and the table registry."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.metadata = MetaData()
        self.tables: dict[str, Table] = {}
        self.engine: Engine | None = None

    def define_tables(self, definitions: list[TableDefinition]) -> None:
        """Declare SQLAlchemy tables for the given definitions."""
        for definition in definitions:
            if definition.name in self.tables:
                continue
            constraints = [
                UniqueConstraint(*cols, name=f"uq_{definition.name}_{'_'.join(cols)}")
                for cols in definition.unique
            ]
            self.tables[definition.name] = Table(
                definition.name,
                self.metadata,
                *[_build_column(c) for c in definition.columns],
                *constraints,
            )

    def table(self, name: str) -> Table:
        if name not in self.tables:
            raise MetadataError(f"Unknown table '{name}'")
        return self.tables[name]

    def connect(self) -> None:
        """Create the engine."""
        if self.engine is not None:
            return

        if self.config.is_sqlite:
            sqlite_path = self.config.sqlite_path
            kwargs: dict = {"connect_args": {"check_same_thread": False}}
            if sqlite_path == ":memory:":
                kwargs["poolclass"] = StaticPool
            else:
                Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(self.config.sqlalchemy_url, **kwargs)
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self.engine = create_engine(self.config.sqlalchemy_url, pool_pre_ping=True)

        logger.info("Connected to %s", self.engine.url.render_as_string(hide_password=True))

    def create_all(self) -> None:
        """Create every declared table that does not exist yet."""
        self.metadata.create_all(self._require_engine())

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        """Connection inside a transaction; commits on success, rolls back on error."""
        with self._require_engine().begin() as conn:
            yield conn

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise RuntimeError("Database not connected")
        return self.engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
