"""Configuration loading tests."""

import os
from pathlib import Path

import pytest

from src.catalog.runtime.config.config_data import ConfigData, DatabaseConfig
from src.catalog.runtime.config.config_template import (
    apply_environment_overrides,
    load_templated_yaml,
    substitute_env_vars,
)
from src.catalog.runtime.settings import EnvironmentVariables

ROOT = Path(__file__).resolve().parents[3]


class TestSubstitution:
    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("CATALOG_TEST_VAR", raising=False)
        assert substitute_env_vars("x: ${CATALOG_TEST_VAR:-fallback}") == "x: fallback"

    def test_environment_value_wins(self, monkeypatch):
        monkeypatch.setenv("CATALOG_TEST_VAR", "set")
        assert substitute_env_vars("${CATALOG_TEST_VAR:-fallback}") == "set"
        assert substitute_env_vars("${CATALOG_TEST_VAR}") == "set"

    def test_required_variable_missing(self, monkeypatch):
        monkeypatch.delenv("CATALOG_TEST_VAR", raising=False)
        with pytest.raises(ValueError, match="CATALOG_TEST_VAR"):
            substitute_env_vars("${CATALOG_TEST_VAR}")
        with pytest.raises(ValueError, match="needed for tests"):
            substitute_env_vars("${CATALOG_TEST_VAR:?needed for tests}")


class TestEnvironmentOverrides:
    def test_prefixed_variables_promoted(self, monkeypatch):
        monkeypatch.setenv("STAGING_CATALOG_TEST_URL", "sqlite://")
        monkeypatch.delenv("CATALOG_TEST_URL", raising=False)

        applied = apply_environment_overrides("staging")

        assert "CATALOG_TEST_URL" in applied
        assert os.environ["CATALOG_TEST_URL"] == "sqlite://"
        monkeypatch.delenv("CATALOG_TEST_URL")


class TestLoadTemplatedYaml:
    def test_project_config_loads(self, monkeypatch):
        monkeypatch.setenv("CATALOG_STRICT_AVAILABILITY", "true")
        monkeypatch.setenv("RATE_LIMIT_REQUESTS", "7")

        config = load_templated_yaml(ROOT / "config.yaml")

        assert isinstance(config, ConfigData)
        assert config.catalog.strict_availability is True
        assert config.rate_limiter.requests == 7
        assert config.jwt.allowed_algorithms == ["HS256"]
        assert config.logging.file is None

    def test_invalid_yaml(self, tmp_path):
        bad = tmp_path / "config.yaml"
        bad.write_text("config: [unclosed\n")
        with pytest.raises(ValueError, match="YAML"):
            load_templated_yaml(bad)

    def test_invalid_values(self, tmp_path):
        bad = tmp_path / "config.yaml"
        bad.write_text("config:\n  catalog:\n    search_max_results: 0\n")
        with pytest.raises(ValueError, match="Invalid configuration"):
            load_templated_yaml(bad)

    def test_partial_file_uses_defaults(self, tmp_path):
        partial = tmp_path / "config.yaml"
        partial.write_text("config:\n  app:\n    port: 9000\n")

        config = load_templated_yaml(partial)

        assert config.app.port == 9000
        assert config.catalog.search_max_results == 100


class TestDatabaseConfig:
    def test_sqlite_detection(self):
        assert DatabaseConfig(url="sqlite://").is_sqlite
        assert not DatabaseConfig(url="postgresql://u@db/catalog").is_sqlite

    def test_password_from_file(self, tmp_path):
        secret = tmp_path / "pw"
        secret.write_text("s3cret\n")
        cfg = DatabaseConfig(url="postgresql://app@db:5432/catalog", password_file=str(secret))

        assert cfg.password == "s3cret"
        assert "app:s3cret@db" in cfg.connection_string

    def test_password_from_env(self, monkeypatch):
        monkeypatch.setenv("CATALOG_DB_PW", "envpw")
        cfg = DatabaseConfig(
            url="postgresql://app@db:5432/catalog", password_env_var="CATALOG_DB_PW"
        )
        assert cfg.password == "envpw"


class TestEnvironmentVariables:
    def test_reads_aliases(self, monkeypatch):
        monkeypatch.setenv("APP_ENVIRONMENT", "production")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = EnvironmentVariables(_env_file=None)

        assert settings.environment == "production"
        assert settings.log_level == "DEBUG"
