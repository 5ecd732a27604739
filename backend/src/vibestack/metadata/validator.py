"""JSON Schema checks for the metadata tree.

Each metadata subdirectory has one bundled schema:

    blocks/     -> block.schema.json
    tables/     -> table.schema.json
    schemas/    -> schema.schema.json
    resources/  -> resource.schema.json

All of them share ``_defs.schema.json`` through a ``referencing`` registry.
Findings are returned as ValidationIssue records rather than raised, so the
CLI can print every problem at once and the API can log them at startup.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import cache
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

logger = logging.getLogger(__name__)

SCHEMAS_DIR = Path(__file__).parent / "schemas"
DEFS_SCHEMA = "_defs.schema.json"

SUBDIR_SCHEMAS: dict[str, str] = {
    "blocks": "block.schema.json",
    "tables": "table.schema.json",
    "schemas": "schema.schema.json",
    "resources": "resource.schema.json",
}


@dataclass
class ValidationIssue:
    """One finding in a metadata file."""

    file: Path
    message: str
    path: str = ""  # location in the document, e.g. "resources[0]/slug"
    severity: str = "error"  # "error" | "warning"

    def __str__(self) -> str:
        where = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{where}: {self.message}"


def _read_schema(name: str) -> dict[str, Any]:
    return json.loads((SCHEMAS_DIR / name).read_text())


@cache
def _registry() -> Registry:
    schemas = [_read_schema(name) for name in (DEFS_SCHEMA, *SUBDIR_SCHEMAS.values())]
    return Registry().with_resources(
        (schema["$id"], Resource(contents=schema, specification=DRAFT202012)) for schema in schemas
    )


@cache
def _validator(schema_name: str) -> Draft202012Validator:
    return Draft202012Validator(_read_schema(schema_name), registry=_registry())


def _location(error: ValidationError) -> str:
    """Render an error's document path: ("resources", 0, "slug") -> "resources[0]/slug"."""
    out = ""
    for part in error.absolute_path:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f"/{part}" if out else str(part)
    return out


def _load_document(yaml_path: Path) -> tuple[Any, ValidationIssue | None]:
    try:
        doc = yaml.safe_load(yaml_path.read_text())
    except yaml.YAMLError as exc:
        return None, ValidationIssue(file=yaml_path, message=f"YAML parse error: {exc}")
    if doc is None:
        return None, ValidationIssue(file=yaml_path, message="File is empty or contains only whitespace")
    return doc, None


def validate_yaml_file(yaml_path: Path, schema_name: str) -> list[ValidationIssue]:
    """Check one YAML file against a bundled schema (e.g. "resource.schema.json")."""
    doc, problem = _load_document(yaml_path)
    if problem is not None:
        return [problem]

    errors = sorted(_validator(schema_name).iter_errors(doc), key=lambda e: list(map(str, e.absolute_path)))
    return [ValidationIssue(file=yaml_path, message=e.message, path=_location(e)) for e in errors]


def validate_metadata_dir(metadata_dir: Path, *, strict: bool = False) -> list[ValidationIssue]:
    """Check every YAML file under the metadata root.

    A missing subdirectory is a warning; strict mode turns warnings into errors.
    An empty list means the tree is valid.
    """
    if not metadata_dir.is_dir():
        return [ValidationIssue(file=metadata_dir, message=f"Metadata directory does not exist: {metadata_dir}")]

    issues: list[ValidationIssue] = []
    for subdir, schema_name in SUBDIR_SCHEMAS.items():
        folder = metadata_dir / subdir
        if not folder.is_dir():
            issues.append(
                ValidationIssue(file=folder, message=f"Missing metadata subdirectory '{subdir}'", severity="warning")
            )
            continue
        for yaml_file in sorted(folder.glob("*.yaml")):
            issues.extend(validate_yaml_file(yaml_file, schema_name))

    if strict:
        for issue in issues:
            issue.severity = "error"

    logger.debug("Checked metadata under %s: %d issue(s)", metadata_dir, len(issues))
    return issues
