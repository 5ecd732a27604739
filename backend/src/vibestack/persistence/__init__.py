"""Persistence layer - database configuration and engine."""

from vibestack.persistence.config import DatabaseConfig
from vibestack.persistence.database import Database

__all__ = ["Database", "DatabaseConfig"]
