"""Tests for the command-line interface."""

import json

import pytest
import yaml
from click.testing import CliRunner
from rich.console import Console
from sqlalchemy import create_engine, text

from conftest import SAMPLES_DIR
from schema_live import cli as cli_module
from schema_live.cli import cli

CATALOG = str(SAMPLES_DIR / "blog_catalog.yaml")


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.setattr(cli_module, "setup_logging", lambda verbose=False: None)
    monkeypatch.setattr(cli_module, "console", Console(width=200))
    return CliRunner()


class TestBuildCommand:
    """Tests for the build command."""

    def test_yaml_output(self, runner, models_module):
        result = runner.invoke(cli, ["build", "--catalog", CATALOG, "--models", "blog_models"])

        assert result.exit_code == 0, result.output
        data = yaml.safe_load(result.output)
        assert data["relationships"]["users"]["posts"] == {
            "kind": "hasMany",
            "targetClass": "blog_models.Post",
            "params": ["user_id", "id"],
        }
        assert data["fields"]["users"]["hidden"] == ["password"]

    def test_json_output(self, runner):
        result = runner.invoke(cli, ["build", "--catalog", CATALOG, "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["relationships"]["users"]["roles"]["kind"] == "belongsToMany"
        assert data["relationships"]["users"]["roles"]["targetClass"] is None

    def test_missing_source(self, runner):
        result = runner.invoke(cli, ["build"])

        assert result.exit_code == 1
        assert "No database URL" in result.output

    def test_from_database_url(self, runner, tmp_path):
        path = tmp_path / "app.db"
        engine = create_engine(f"sqlite:///{path}")
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE users (id INTEGER PRIMARY KEY)"))
            conn.execute(text("CREATE TABLE posts (id INTEGER PRIMARY KEY, user_id INTEGER REFERENCES users(id))"))
        engine.dispose()

        result = runner.invoke(cli, ["build", "--url", f"sqlite:///{path}", "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["relationships"]["posts"]["user"]["kind"] == "belongsTo"

    def test_connection_from_settings(self, runner, tmp_path):
        path = tmp_path / "reporting.db"
        engine = create_engine(f"sqlite:///{path}")
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE accounts (id INTEGER PRIMARY KEY, name VARCHAR(40) NOT NULL)"))
        engine.dispose()

        settings = tmp_path / "schema_live.yaml"
        settings.write_text(yaml.safe_dump({"connections": {"reporting": f"sqlite:///{path}"}}))

        result = runner.invoke(cli, [
            "build", "--config", str(settings), "--connection", "reporting", "--format", "json",
        ])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["fields"]["accounts"]["rules"] == {"name": ["required", "max:40"]}


class TestRelationshipsCommand:
    """Tests for the relationships command."""

    def test_lists_relationships(self, runner, models_module):
        result = runner.invoke(cli, ["relationships", "--catalog", CATALOG, "--models", "blog_models"])

        assert result.exit_code == 0, result.output
        assert "belongsToMany" in result.output
        assert "blog_models.Role" in result.output

    def test_table_filter(self, runner):
        result = runner.invoke(cli, ["relationships", "--catalog", CATALOG, "--table", "profiles"])

        assert result.exit_code == 0, result.output
        assert "owner" in result.output
        assert "belongsToMany" not in result.output

    def test_no_relationships(self, runner):
        result = runner.invoke(cli, ["relationships", "--catalog", CATALOG, "--table", "missing"])

        assert result.exit_code == 0
        assert "No relationships inferred" in result.output


class TestFieldsCommand:
    """Tests for the fields command."""

    def test_shows_fields(self, runner):
        result = runner.invoke(cli, ["fields", "--catalog", CATALOG, "--table", "users"])

        assert result.exit_code == 0, result.output
        assert "password" in result.output
        assert "guarded, hidden" in result.output
        assert "required|max:191|email" in result.output

    def test_unknown_table(self, runner):
        result = runner.invoke(cli, ["fields", "--catalog", CATALOG, "--table", "missing"])

        assert result.exit_code == 1
        assert "Unknown table" in result.output

    def test_table_is_required(self, runner):
        result = runner.invoke(cli, ["fields", "--catalog", CATALOG])

        assert result.exit_code != 0


def test_version(runner):
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "0.1.0" in result.output
