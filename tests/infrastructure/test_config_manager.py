"""Tests for state store configuration and application settings."""

import json
import logging
import os

import pytest
from pydantic import ValidationError

from medledger.infrastructure.config_manager import ConfigManager, StoreConfig, get_store_config
from medledger.infrastructure.settings import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("ML_STORE_TYPE", "ML_DB_PATH", "ML_DB_TABLE", "ML_LOG_LEVEL", "ML_JSON_LOGS", "ML_CLIENT_ID_HEADER"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestStoreConfig:
    """Validation of StoreConfig fields."""

    def test_defaults_to_memory(self):
        config = StoreConfig()

        assert config.store_type == "memory"
        assert config.db_path is None
        assert config.table_name == "world_state"

    def test_store_type_is_normalised(self):
        assert StoreConfig(store_type="DuckDB").store_type == "duckdb"

    def test_unsupported_store_type(self):
        with pytest.raises(ValidationError) as exc_info:
            StoreConfig(store_type="postgresql")

        assert "Unsupported store type" in str(exc_info.value)

    def test_db_path_directory_must_exist(self, tmp_path):
        with pytest.raises(ValidationError):
            StoreConfig(store_type="duckdb", db_path=str(tmp_path / "missing" / "ledger.duckdb"))

    def test_db_path_file_may_not_exist_yet(self, tmp_path):
        path = str(tmp_path / "ledger.duckdb")

        assert StoreConfig(store_type="duckdb", db_path=path).db_path == path

    def test_table_name_must_be_identifier(self):
        with pytest.raises(ValidationError):
            StoreConfig(store_type="duckdb", table_name="state; DROP TABLE x")


class TestConfigManagerFromEnvironment:

    def test_reads_environment(self, clean_env, tmp_path):
        db_path = str(tmp_path / "ledger.duckdb")
        clean_env.setenv("ML_STORE_TYPE", "duckdb")
        clean_env.setenv("ML_DB_PATH", db_path)
        clean_env.setenv("ML_DB_TABLE", "ledger_state")

        config = ConfigManager.from_environment().get_store_config()

        assert config.store_type == "duckdb"
        assert config.db_path == db_path
        assert config.table_name == "ledger_state"

    def test_defaults_without_environment(self, clean_env):
        config = get_store_config()

        assert config.store_type == "memory"
        assert config.table_name == "world_state"

    def test_get_with_dot_notation(self, clean_env):
        clean_env.setenv("ML_STORE_TYPE", "memory")
        manager = ConfigManager.from_environment()

        assert manager.get("store.store_type") == "memory"
        assert manager.get("store.missing", "fallback") == "fallback"
        assert manager.get("store.store_type.deeper", "fallback") == "fallback"


class TestConfigManagerFromFile:

    def test_loads_json_file(self, tmp_path):
        config_file = tmp_path / "medledger.json"
        config_file.write_text(json.dumps({"store": {"store_type": "duckdb", "db_path": ":memory:"}}))
        os.chmod(config_file, 0o600)

        config = ConfigManager.from_file(str(config_file)).get_store_config()

        assert config.store_type == "duckdb"
        assert config.db_path == ":memory:"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager.from_file(str(tmp_path / "nope.json"))

    def test_invalid_json(self, tmp_path):
        config_file = tmp_path / "bad.json"
        config_file.write_text("{not json")

        with pytest.raises(ValueError) as exc_info:
            ConfigManager.from_file(str(config_file))

        assert "Invalid JSON" in str(exc_info.value)

    def test_permissive_file_is_flagged(self, tmp_path, caplog):
        config_file = tmp_path / "open.json"
        config_file.write_text("{}")
        os.chmod(config_file, 0o644)

        with caplog.at_level(logging.WARNING):
            ConfigManager.from_file(str(config_file))

        assert "overly permissive" in caplog.text


class TestSettings:

    def test_defaults(self, clean_env):
        settings = Settings()

        assert settings.app_name == "MedLedger"
        assert settings.log_level == "INFO"
        assert settings.json_logs is False
        assert settings.client_id_header == "X-Client-Id"
        assert settings.store_config.store_type == "memory"

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("ML_LOG_LEVEL", "DEBUG")
        clean_env.setenv("ML_JSON_LOGS", "true")
        clean_env.setenv("ML_CLIENT_ID_HEADER", "X-Caller")

        settings = Settings()

        assert settings.log_level == "DEBUG"
        assert settings.json_logs is True
        assert settings.client_id_header == "X-Caller"
