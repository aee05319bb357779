"""Tests for wren.config — AppConfig frozen dataclass."""

import pytest

from wren.config import AppConfig


class TestAppConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()

        assert cfg.host == "127.0.0.1"
        assert cfg.port == 8000
        assert cfg.debug is False
        assert cfg.deferred_timeout == 30.0
        assert cfg.shutdown_grace == 5.0
        assert cfg.expose_errors is True
        assert cfg.access_log is True

    def test_override(self) -> None:
        cfg = AppConfig(host="0.0.0.0", port=3000, deferred_timeout=0.5, expose_errors=False)

        assert cfg.host == "0.0.0.0"
        assert cfg.port == 3000
        assert cfg.deferred_timeout == 0.5
        assert cfg.expose_errors is False

    def test_frozen(self) -> None:
        cfg = AppConfig()

        with pytest.raises(AttributeError):
            cfg.debug = True  # type: ignore[misc]

    def test_exported(self) -> None:
        import wren

        assert wren.AppConfig is AppConfig
