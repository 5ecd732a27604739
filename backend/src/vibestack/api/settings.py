"""Application settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from vibestack.persistence.config import DatabaseConfig

_TRUTHY = ("1", "true", "yes", "on")


def resolve_base_path(cwd: Path | None = None) -> Path:
    """Repository root: the parent of backend/ when run from there, else cwd."""
    cwd = cwd or Path.cwd()
    if cwd.name == "backend":
        return cwd.parent
    return cwd


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass
class AppSettings:
    base_path: Path
    metadata_path: Path
    database: DatabaseConfig
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])
    legacy_relationship_put: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> AppSettings:
        """Create settings from environment variables.

        VIBESTACK_METADATA_PATH, VIBESTACK_CORS_ORIGINS (comma separated),
        VIBESTACK_LEGACY_RELATIONSHIP_PUT, VIBESTACK_LOG_LEVEL, plus the
        database variables read by DatabaseConfig.from_env.
        """
        base_path = base_path or resolve_base_path()
        metadata_path = Path(os.environ.get("VIBESTACK_METADATA_PATH") or base_path / "metadata")
        origins = os.environ.get("VIBESTACK_CORS_ORIGINS", "http://localhost:5173")
        return cls(
            base_path=base_path,
            metadata_path=metadata_path,
            database=DatabaseConfig.from_env(base_path),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            legacy_relationship_put=_env_flag("VIBESTACK_LEGACY_RELATIONSHIP_PUT", True),
            log_level=os.environ.get("VIBESTACK_LOG_LEVEL", "INFO").upper(),
        )
