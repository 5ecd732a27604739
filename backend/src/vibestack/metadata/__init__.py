"""Declarative metadata: tables, validation schemas and resources."""

from vibestack.metadata.loader import (
    ColumnDefinition,
    MetadataError,
    MetadataLoader,
    ResourceDefinition,
    SchemaDefinition,
    SchemaField,
    TableDefinition,
)

__all__ = [
    "ColumnDefinition",
    "MetadataError",
    "MetadataLoader",
    "ResourceDefinition",
    "SchemaDefinition",
    "SchemaField",
    "TableDefinition",
]
