import pytest
from pydantic import ValidationError
from typer.testing import CliRunner

from rowbase import config
from rowbase.domain.pool import MAX_INSTANCE_POOL_SIZE
from rowbase.domain.schema import TableSchema
from rowbase.infrastructure.db_factory import bootstrap_registry, build_dsn
from rowbase.infrastructure.registry import ConnectionRegistry
from rowbase.main import app


def test_get_settings_defaults():
    settings = config.get_settings()
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_user == "postgres"
    assert settings.identity_pool_size == MAX_INSTANCE_POOL_SIZE
    assert settings.format_dates is True


def test_build_dsn_from_settings():
    settings = config.Settings(db_user="u", db_password="p", db_host="h", db_port=1, db_name="d")
    assert build_dsn(settings) == "postgresql://u:p@h:1/d"


def test_bootstrap_registers_sqlite_connection():
    registry = ConnectionRegistry()
    settings = config.Settings(db_backend="sqlite", sqlite_path=":memory:", default_connection="app")
    bootstrap_registry(settings, registry)
    assert registry.connection_names() == ["app"]
    assert registry.get_connection().name == "sqlite"
    registry.clear()


def test_schema_rejects_unknown_primary_key():
    with pytest.raises(ValidationError):
        TableSchema.build("t", ["a"], primary_keys=["b"])


def test_schema_rejects_duplicate_columns():
    with pytest.raises(ValidationError):
        TableSchema.build("t", ["a", "a"])


def test_schema_helpers():
    schema = TableSchema.build("t", [("id", "int"), "name"], primary_keys=["id"], auto_increment=True)
    assert schema.column_names == ["id", "name"]
    assert schema.integer_columns == ["id"]
    assert schema.primary_key == "id"
    assert schema.has_column("name") and not schema.has_column("other")
    assert schema.is_auto_increment()


def test_cli_info_and_check(monkeypatch):
    monkeypatch.setenv("DB_BACKEND", "sqlite")
    monkeypatch.setenv("SQLITE_PATH", ":memory:")
    config.get_settings.cache_clear()
    try:
        runner = CliRunner()
        info = runner.invoke(app, ["info"])
        assert info.exit_code == 0
        assert "backend=sqlite" in info.output

        check = runner.invoke(app, ["check"])
        assert check.exit_code == 0
        assert "sqlite: OK (1)" in check.output
    finally:
        config.get_settings.cache_clear()
