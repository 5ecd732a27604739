"""
Tests for vibestack.metadata.validator

Covers:
  - validate_yaml_file()            - single-file validation (valid + invalid)
  - validate_metadata_dir()         - directory walk (real metadata passes)
  - validate_metadata_dir(strict=True)
"""
from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from vibestack.metadata.validator import (
    ValidationIssue,
    validate_metadata_dir,
    validate_yaml_file,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _write_yaml(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data))
    return path


def _write_raw(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


# Path to the real metadata directory
_REPO_ROOT = Path(__file__).resolve().parents[2]
_METADATA_DIR = _REPO_ROOT / "metadata"


def _resource_doc(**overrides) -> dict:
    resource = {
        "slug": "tracks",
        "table": "tracks",
        "entityName": "Track",
        "createSchema": "trackCreate",
    }
    resource.update(overrides)
    return {"context": "studio", "contextValue": "studio", "resources": [resource]}


# ---------------------------------------------------------------------------
# validate_yaml_file
# ---------------------------------------------------------------------------


class TestValidateYamlFile:
    def test_valid_resource(self, tmp_path):
        path = _write_yaml(tmp_path / "studio.yaml", _resource_doc())
        assert validate_yaml_file(path, "resource.schema.json") == []

    def test_missing_required_key(self, tmp_path):
        doc = _resource_doc()
        del doc["resources"][0]["entityName"]
        path = _write_yaml(tmp_path / "studio.yaml", doc)

        issues = validate_yaml_file(path, "resource.schema.json")

        assert len(issues) == 1
        assert "entityName" in issues[0].message
        assert issues[0].path == "resources[0]"

    def test_unknown_key(self, tmp_path):
        path = _write_yaml(tmp_path / "studio.yaml", _resource_doc(searchable=True))
        issues = validate_yaml_file(path, "resource.schema.json")
        assert any("searchable" in i.message for i in issues)

    def test_invalid_slug(self, tmp_path):
        path = _write_yaml(tmp_path / "studio.yaml", _resource_doc(slug="Bad Slug"))
        issues = validate_yaml_file(path, "resource.schema.json")
        assert issues and issues[0].path == "resources[0]/slug"

    def test_reserved_filter_param(self, tmp_path):
        path = _write_yaml(
            tmp_path / "studio.yaml", _resource_doc(extraFilters=[{"param": "search"}])
        )
        issues = validate_yaml_file(path, "resource.schema.json")
        assert issues and issues[0].path == "resources[0]/extraFilters[0]/param"

    def test_invalid_default_order(self, tmp_path):
        path = _write_yaml(tmp_path / "studio.yaml", _resource_doc(defaultOrder="up"))
        assert validate_yaml_file(path, "resource.schema.json")

    def test_relationship_requires_body_field(self, tmp_path):
        relationship = {
            "slug": "tags",
            "pivot": "track_tags",
            "related": "tags",
            "parentFk": "track_id",
            "relatedFk": "tag_id",
        }
        path = _write_yaml(tmp_path / "studio.yaml", _resource_doc(relationships=[relationship]))
        issues = validate_yaml_file(path, "resource.schema.json")
        assert any("bodyField" in i.message for i in issues)

    def test_table_column_type(self, tmp_path):
        path = _write_yaml(
            tmp_path / "tracks.yaml",
            {"table": "tracks", "fields": [{"name": "bpm", "type": "decimal"}]},
        )
        issues = validate_yaml_file(path, "table.schema.json")
        assert issues and issues[0].path == "fields[0]/type"

    def test_table_references_format(self, tmp_path):
        path = _write_yaml(
            tmp_path / "tracks.yaml",
            {"table": "tracks", "fields": [{"name": "album_id", "type": "integer", "references": "albums"}]},
        )
        assert validate_yaml_file(path, "table.schema.json")

    def test_schema_field_rules(self, tmp_path):
        path = _write_yaml(
            tmp_path / "track.yaml",
            {"schema": "trackCreate", "fields": [{"name": "name", "type": "string", "minLength": -1}]},
        )
        issues = validate_yaml_file(path, "schema.schema.json")
        assert issues and issues[0].path == "fields[0]/minLength"

    def test_empty_file(self, tmp_path):
        path = _write_raw(tmp_path / "empty.yaml", "   \n")
        issues = validate_yaml_file(path, "block.schema.json")
        assert len(issues) == 1
        assert "empty" in issues[0].message

    def test_yaml_parse_error(self, tmp_path):
        path = _write_raw(tmp_path / "broken.yaml", "block: [unclosed\n")
        issues = validate_yaml_file(path, "block.schema.json")
        assert "YAML parse error" in issues[0].message


# ---------------------------------------------------------------------------
# validate_metadata_dir
# ---------------------------------------------------------------------------


class TestValidateMetadataDir:
    def test_real_metadata_is_valid(self):
        issues = validate_metadata_dir(_METADATA_DIR)
        errors = [i for i in issues if i.severity == "error"]
        assert errors == [], "\n".join(str(i) for i in errors)

    def test_real_metadata_is_valid_strict(self):
        assert validate_metadata_dir(_METADATA_DIR, strict=True) == []

    def test_missing_directory(self, tmp_path):
        issues = validate_metadata_dir(tmp_path / "nope")
        assert len(issues) == 1
        assert issues[0].severity == "error"

    def test_missing_subdirectories_warn(self, tmp_path):
        _write_yaml(tmp_path / "resources" / "studio.yaml", _resource_doc())

        issues = validate_metadata_dir(tmp_path)

        assert {i.severity for i in issues} == {"warning"}
        assert len(issues) == 3

    def test_strict_escalates_warnings(self, tmp_path):
        _write_yaml(tmp_path / "resources" / "studio.yaml", _resource_doc())
        issues = validate_metadata_dir(tmp_path, strict=True)
        assert {i.severity for i in issues} == {"error"}

    def test_collects_issues_across_files(self, tmp_path):
        for subdir in ("blocks", "tables", "schemas"):
            (tmp_path / subdir).mkdir()
        _write_yaml(tmp_path / "resources" / "a.yaml", _resource_doc(slug="Bad"))
        _write_yaml(tmp_path / "resources" / "b.yaml", _resource_doc(defaultOrder="up"))

        issues = validate_metadata_dir(tmp_path)

        assert {i.file.name for i in issues} == {"a.yaml", "b.yaml"}


class TestValidationIssue:
    @pytest.mark.parametrize(
        "issue,expected",
        [
            (
                ValidationIssue(file=Path("r.yaml"), message="bad", path="resources[0]"),
                "[ERROR] r.yaml at resources[0]: bad",
            ),
            (
                ValidationIssue(file=Path("r.yaml"), message="odd", severity="warning"),
                "[WARNING] r.yaml: odd",
            ),
        ],
    )
    def test_str(self, issue, expected):
        assert str(issue) == expected
