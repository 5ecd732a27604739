"""Database URL resolution."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.engine import URL, make_url

DEFAULT_DB_FILE = "vibestack.db"


def _url_from_env(base_path: Path | None) -> str:
    if url := os.environ.get("DATABASE_URL"):
        return url
    if db_path := os.environ.get("VIBESTACK_DB_PATH"):
        return f"sqlite:///{db_path}"
    if base_path is not None:
        return f"sqlite:///{base_path / 'data' / DEFAULT_DB_FILE}"
    return f"sqlite:///{DEFAULT_DB_FILE}"


@dataclass(frozen=True)
class DatabaseConfig:
    """Where the catalog lives: a sqlite:// or postgresql:// URL."""

    url: str

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """DATABASE_URL, else VIBESTACK_DB_PATH as a SQLite file, else {base_path}/data/vibestack.db."""
        return cls(url=_url_from_env(base_path))

    @property
    def parsed(self) -> URL:
        return make_url(self.url)

    @property
    def is_sqlite(self) -> bool:
        return self.parsed.get_backend_name() == "sqlite"

    @property
    def is_postgresql(self) -> bool:
        return self.parsed.get_backend_name() == "postgresql"

    @property
    def sqlite_path(self) -> str | None:
        """File path of a SQLite database, ":memory:" when it has none."""
        if not self.is_sqlite:
            return None
        return self.parsed.database or ":memory:"

    @property
    def sqlalchemy_url(self) -> str:
        # A bare postgresql:// would pick psycopg2; the postgres extra installs psycopg 3
        url = self.parsed
        if url.drivername == "postgresql":
            url = url.set(drivername="postgresql+psycopg")
        return url.render_as_string(hide_password=False)
