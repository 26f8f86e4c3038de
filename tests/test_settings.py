"""Tests for the process settings."""

import pytest
from pydantic import ValidationError

from lg_sources.settings import DEFAULT_CONFIG_FILE, OutputFormat, Settings, load_settings


class TestSettings:
    """Tests for Settings."""

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in ("LG_CONFIG_FILE", "LG_LOG_LEVEL", "LG_OUTPUT_FORMAT", "LG_REQUEST_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.config_file == DEFAULT_CONFIG_FILE
        assert settings.log_level == "INFO"
        assert settings.output_format == OutputFormat.TEXT
        assert settings.request_timeout is None

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("LG_CONFIG_FILE", "/tmp/lg.conf")
        monkeypatch.setenv("LG_OUTPUT_FORMAT", "json")
        monkeypatch.setenv("LG_REQUEST_TIMEOUT", "2.5")

        settings = Settings(_env_file=None)

        assert settings.config_file == "/tmp/lg.conf"
        assert settings.output_format == OutputFormat.JSON
        assert settings.request_timeout == 2.5

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("LG_CONFIG_FILE", "/tmp/lg.conf")
        settings = load_settings(config_file="/srv/lg.conf", log_level=None)
        assert settings.config_file == "/srv/lg.conf"
        assert settings.log_level == "INFO"

    def test_invalid_timeout(self):
        with pytest.raises(ValidationError):
            load_settings(request_timeout=0)
