"""Tests for wren.server.terminal_errors — one diagnostic line per failure."""

import logging

import pytest

from wren.failure import Failure, FailureKind
from wren.http.request import Request
from wren.server.terminal_errors import (
    format_compact_traceback,
    format_failure_line,
    format_minimal_error,
    log_failure,
)


def _raised(message: str) -> RuntimeError:
    try:
        raise RuntimeError(message)
    except RuntimeError as exc:
        return exc


class TestFormatFailureLine:
    def test_classified(self) -> None:
        line = format_failure_line(
            Failure("boom", FailureKind.HANDLER_FAULT), Request.build("GET", "/sync-test")
        )
        assert line == "500 GET /sync-test [handler_fault] boom"

    def test_unclassified(self) -> None:
        line = format_failure_line(Failure("boom"), Request.build("POST", "/x"))
        assert line == "500 POST /x [unclassified] boom"


class TestFormatters:
    def test_minimal(self) -> None:
        text = format_minimal_error(_raised("boom"))
        assert text.startswith("RuntimeError at ")
        assert "test_terminal_errors.py" in text

    def test_minimal_without_traceback(self) -> None:
        assert format_minimal_error(ValueError("x")) == "ValueError"

    def test_compact(self) -> None:
        text = format_compact_traceback(_raised("boom"))
        assert text.splitlines()[0] == "RuntimeError: boom"
        assert "in _raised" in text


class TestLogFailure:
    def test_one_line_for_exception(
        self, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("WREN_TRACEBACK", raising=False)
        failure = Failure.from_exception(_raised("boom"), FailureKind.HANDLER_FAULT)

        with caplog.at_level(logging.DEBUG, logger="wren.server"):
            log_failure(failure, Request.build("GET", "/sync-test"))

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.levelno == logging.ERROR
        assert record.getMessage().startswith("500 GET /sync-test [handler_fault] boom (RuntimeError at ")
        assert "\n" not in record.getMessage()

    def test_client_errors_warn(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="wren.server"):
            log_failure(
                Failure("not found", FailureKind.ROUTE_NOT_FOUND), Request.build("GET", "/missing")
            )

        assert caplog.records[0].levelno == logging.WARNING
        assert caplog.records[0].getMessage() == "404 GET /missing [route_not_found] not found"

    def test_full_traceback(
        self, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("WREN_TRACEBACK", "full")
        failure = Failure.from_exception(_raised("boom"), FailureKind.DEFERRED_FAULT)

        with caplog.at_level(logging.DEBUG, logger="wren.server"):
            log_failure(failure, Request.build("GET", "/a"))

        assert caplog.records[0].exc_info is not None
        assert "Traceback" in caplog.text

    def test_compact_traceback(
        self, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("WREN_TRACEBACK", "compact")
        failure = Failure.from_exception(_raised("boom"), FailureKind.DEFERRED_FAULT)

        with caplog.at_level(logging.DEBUG, logger="wren.server"):
            log_failure(failure, Request.build("GET", "/a"))

        assert "Trace (app frames):" in caplog.records[0].getMessage()
