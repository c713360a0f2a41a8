from pydantic import ValidationError
import pytest

from clc_exec.config import DEFAULT_BASE_URL, Settings, get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for env in ("CLC_BASE_URL", "CLC_POLL_INTERVAL", "CLC_POLL_TIMEOUT", "LOG_LEVEL"):
            monkeypatch.delenv(env, raising=False)

        settings = Settings()

        assert settings.clc_base_url == DEFAULT_BASE_URL
        assert settings.poll_interval == 5.0  # noqa: PLR2004
        assert settings.poll_timeout == 1800.0  # noqa: PLR2004
        assert settings.log_level == "INFO"

    def test_load_from_env(self, monkeypatch):
        monkeypatch.setenv("CLC_BASE_URL", "https://api.example.test/v2")
        monkeypatch.setenv("CLC_POLL_INTERVAL", "2.5")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = Settings()

        assert settings.clc_base_url == "https://api.example.test/v2"
        assert settings.poll_interval == 2.5  # noqa: PLR2004
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("value", ["", "none", "None"])
    def test_poll_timeout_can_be_disabled(self, monkeypatch, value):
        monkeypatch.setenv("CLC_POLL_TIMEOUT", value)

        assert Settings().poll_timeout is None

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValidationError):
            Settings()

    def test_non_positive_poll_interval(self):
        with pytest.raises(ValidationError):
            Settings(poll_interval=0)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
