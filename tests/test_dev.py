"""Tests for wren.server.dev and App.run() — serving via pounce."""

import sys
from typing import Any

import pytest

from wren.app import App
from wren.config import AppConfig
from wren.errors import ConfigurationError
from wren.server import dev


class TestRunServer:
    def test_missing_pounce(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "pounce.config", None)

        with pytest.raises(ConfigurationError, match=r"pip install wren\[server\]"):
            dev.run_server(App(), "127.0.0.1", 8000)


class TestAppRun:
    def test_run_uses_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[dict[str, Any]] = []

        def fake_run_server(app: App, host: str, port: int, *, reload: bool = False) -> None:
            calls.append({"app": app, "host": host, "port": port, "reload": reload})

        monkeypatch.setattr(dev, "run_server", fake_run_server)
        app = App(AppConfig(host="0.0.0.0", port=9000, debug=True))
        app.run()

        assert calls == [{"app": app, "host": "0.0.0.0", "port": 9000, "reload": True}]

    def test_run_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[tuple[str, int]] = []

        def fake_run_server(app: App, host: str, port: int, *, reload: bool = False) -> None:
            calls.append((host, port))

        monkeypatch.setattr(dev, "run_server", fake_run_server)
        App().run(host="localhost", port=3000)

        assert calls == [("localhost", 3000)]

    def test_run_builds_app(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(dev, "run_server", lambda *args, **kwargs: None)
        app = App()
        app.run()

        with pytest.raises(RuntimeError, match="Cannot modify"):
            app.register("GET", "/", lambda: "late")
