"""Tests for Vibestack CLI commands."""

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from vibestack.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def in_backend_dir(monkeypatch):
    """Ensure CWD is the backend directory for metadata resolution."""
    backend_dir = Path(__file__).parent.parent
    monkeypatch.chdir(backend_dir)
    monkeypatch.delenv("VIBESTACK_METADATA_PATH", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)


class TestMetadataValidate:
    def test_validate_succeeds(self, runner, in_backend_dir):
        result = runner.invoke(cli, ["metadata", "validate"])
        assert result.exit_code == 0, result.output
        assert "All metadata is valid" in result.output

    def test_validate_strict_succeeds(self, runner, in_backend_dir):
        result = runner.invoke(cli, ["metadata", "validate", "--strict"])
        assert result.exit_code == 0, result.output

    def test_validate_lists_resources(self, runner, in_backend_dir):
        result = runner.invoke(cli, ["metadata", "validate"])
        assert "/my-music/songs (Song, 2 relationships)" in result.output
        assert "/lab/songs (Song, 3 relationships)" in result.output
        assert "/suno/songs (Suno Song, 0 relationships)" in result.output

    def test_validate_missing_directory(self, runner, tmp_path, monkeypatch):
        monkeypatch.setenv("VIBESTACK_METADATA_PATH", str(tmp_path / "nope"))
        result = runner.invoke(cli, ["metadata", "validate"])
        assert result.exit_code == 1
        assert "Metadata directory not found" in result.output

    def test_validate_reports_schema_errors(self, runner, tmp_path, monkeypatch):
        root = tmp_path / "metadata"
        (root / "resources").mkdir(parents=True)
        (root / "resources" / "bad.yaml").write_text(yaml.dump({"context": "Bad Context"}))
        monkeypatch.setenv("VIBESTACK_METADATA_PATH", str(root))

        result = runner.invoke(cli, ["metadata", "validate"])

        assert result.exit_code == 1
        assert "schema error(s) found" in result.output

    def test_validate_reports_resolution_errors(self, runner, tmp_path, monkeypatch):
        root = tmp_path / "metadata"
        for subdir in ("blocks", "tables", "schemas"):
            (root / subdir).mkdir(parents=True)
        (root / "resources").mkdir()
        resource = {
            "context": "studio",
            "resources": [
                {"slug": "tracks", "table": "tracks", "entityName": "Track", "createSchema": "trackCreate"}
            ],
        }
        (root / "resources" / "studio.yaml").write_text(yaml.dump(resource))
        monkeypatch.setenv("VIBESTACK_METADATA_PATH", str(root))

        result = runner.invoke(cli, ["metadata", "validate"])

        assert result.exit_code == 1
        assert "Resolution failed" in result.output
        assert "unknown table 'tracks'" in result.output


class TestMetadataRoutes:
    def test_routes_lists_generated_paths(self, runner, in_backend_dir, monkeypatch):
        monkeypatch.delenv("VIBESTACK_LEGACY_RELATIONSHIP_PUT", raising=False)
        result = runner.invoke(cli, ["metadata", "routes"])

        assert result.exit_code == 0, result.output
        assert "GET    /api/my-music/songs" in result.output
        assert "POST   /api/lab/songs/{id}/vibes" in result.output
        assert "PATCH  /api/lab/songs/{id}/vibes/{relatedId}" in result.output
        assert "(deprecated)" in result.output

    def test_routes_reports_unknown_column_type(self, runner, tmp_path, monkeypatch):
        root = tmp_path / "metadata"
        (root / "tables").mkdir(parents=True)
        (root / "tables" / "tracks.yaml").write_text(
            yaml.dump({"table": "tracks", "fields": [{"name": "bpm", "type": "decimal"}]})
        )
        monkeypatch.setenv("VIBESTACK_METADATA_PATH", str(root))

        result = runner.invoke(cli, ["metadata", "routes"])

        assert result.exit_code == 1
        assert "Resolution failed" in result.output
        assert "Unknown field type 'decimal'" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_routes_without_legacy_put(self, runner, in_backend_dir, monkeypatch):
        monkeypatch.setenv("VIBESTACK_LEGACY_RELATIONSHIP_PUT", "0")
        result = runner.invoke(cli, ["metadata", "routes"])
        assert "(deprecated)" not in result.output


class TestDbInit:
    def test_init_creates_tables(self, runner, in_backend_dir, tmp_path, monkeypatch):
        db_path = tmp_path / "data" / "init.db"
        monkeypatch.setenv("VIBESTACK_DB_PATH", str(db_path))

        result = runner.invoke(cli, ["db", "init"])

        assert result.exit_code == 0, result.output
        assert "Initialized 15 tables" in result.output
        assert db_path.exists()

    def test_init_is_repeatable(self, runner, in_backend_dir, tmp_path, monkeypatch):
        monkeypatch.setenv("VIBESTACK_DB_PATH", str(tmp_path / "init.db"))
        assert runner.invoke(cli, ["db", "init"]).exit_code == 0
        assert runner.invoke(cli, ["db", "init"]).exit_code == 0
