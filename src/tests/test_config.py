"""Tests for environment-driven configuration."""

from pathlib import Path

import pytest

from src.utils.config import Config, get_config, reset_config


class TestNumericSettings:
    def test_defaults(self):
        config = Config()
        assert config.labor_rate_per_hour == 30.0
        assert config.import_batch_size == 100

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("KITCHEN_BACKOFFICE_LABOR_RATE", "42.5")
        monkeypatch.setenv("KITCHEN_BACKOFFICE_IMPORT_BATCH_SIZE", "25")

        config = Config()

        assert config.labor_rate_per_hour == 42.5
        assert config.import_batch_size == 25

    @pytest.mark.parametrize("raw", ["abc", "-3"])
    def test_invalid_labor_rate_falls_back(self, monkeypatch, caplog, raw):
        monkeypatch.setenv("KITCHEN_BACKOFFICE_LABOR_RATE", raw)

        assert Config().labor_rate_per_hour == 30.0
        assert "Ignoring invalid KITCHEN_BACKOFFICE_LABOR_RATE" in caplog.text

    def test_zero_batch_size_rejected(self, monkeypatch):
        monkeypatch.setenv("KITCHEN_BACKOFFICE_IMPORT_BATCH_SIZE", "0")
        assert Config().import_batch_size == 100


class TestDatabaseLocation:
    def test_development_uses_project_data_dir(self, monkeypatch):
        monkeypatch.delenv("KITCHEN_BACKOFFICE_DATABASE_URL", raising=False)

        config = Config("development")

        assert config.database_path.parent.name == "data"
        assert config.database_url == f"sqlite:///{config.database_path.as_posix()}"

    def test_production_uses_documents(self):
        path = Config("production").database_path
        assert path.parent == Path.home() / "Documents" / "KitchenBackOffice"

    def test_url_override(self, monkeypatch):
        monkeypatch.setenv("KITCHEN_BACKOFFICE_DATABASE_URL", "sqlite:///:memory:")
        assert Config().database_url == "sqlite:///:memory:"


class TestSingleton:
    def test_environment_fixed_after_creation(self, monkeypatch, caplog):
        monkeypatch.setenv("KITCHEN_BACKOFFICE_ENV", "development")
        reset_config()

        first = get_config()
        second = get_config("production")

        assert second is first
        assert first.environment == "development"
        assert "ignored" in caplog.text
