"""JSON log output: shape, lifted request context, and the context filter."""

from __future__ import annotations

import json
import logging
import sys

from qualityedu.core.logging import (
    _ContainerFormatter,
    _JsonFormatter,
    _RequestContextFilter,
    request_id_var,
    user_id_var,
)


def _record(msg: str = "test message", level: int = logging.INFO, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="qualityedu.test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_produces_valid_json() -> None:
    formatter = _JsonFormatter()
    record = logging.LogRecord(
        name="qualityedu.services.auth_service",
        level=logging.INFO,
        pathname="auth_service.py",
        lineno=42,
        msg="Login succeeded principal_id=%s",
        args=("abc",),
        exc_info=None,
    )
    parsed = json.loads(formatter.format(record))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "qualityedu.services.auth_service"
    assert parsed["message"] == "Login succeeded principal_id=abc"
    assert "timestamp" in parsed


def test_json_formatter_lifts_request_context() -> None:
    record = _record(
        request_id="abc-123",
        method="GET",
        path="/api/courses/public/all",
        user_id="student@example.com",
        role="STUDENT",
        status_code=200,
        duration_ms=12.5,
    )
    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "abc-123"
    assert parsed["path"] == "/api/courses/public/all"
    assert parsed["user_id"] == "student@example.com"
    assert parsed["role"] == "STUDENT"
    assert parsed["status_code"] == 200
    assert parsed["duration_ms"] == 12.5


def test_json_formatter_omits_placeholder_context() -> None:
    parsed = json.loads(_JsonFormatter().format(_record(request_id="-", user_id="-")))
    assert "request_id" not in parsed
    assert "user_id" not in parsed


def test_json_formatter_includes_exception_info() -> None:
    formatter = _JsonFormatter()
    try:
        raise ValueError("test error")
    except ValueError:
        record = _record("Something failed", logging.ERROR)
        record.exc_info = sys.exc_info()
        output = formatter.format(record)

    parsed = json.loads(output)
    assert "ValueError: test error" in parsed["exception"]


def test_container_formatter_is_plain_text() -> None:
    output = _ContainerFormatter().format(_record("server started"))
    assert "INFO" in output
    assert "qualityedu.test" in output
    assert "server started" in output
    assert not output.lstrip().startswith("{")


def test_context_filter_copies_context_vars() -> None:
    rid_token = request_id_var.set("req-42")
    uid_token = user_id_var.set("teacher@example.com")
    try:
        record = _record()
        assert _RequestContextFilter().filter(record) is True
        assert record.request_id == "req-42"  # type: ignore[attr-defined]
        assert record.user_id == "teacher@example.com"  # type: ignore[attr-defined]
    finally:
        request_id_var.reset(rid_token)
        user_id_var.reset(uid_token)


def test_context_filter_keeps_explicit_extra() -> None:
    record = _record(request_id="explicit")
    _RequestContextFilter().filter(record)
    assert record.request_id == "explicit"  # type: ignore[attr-defined]
    assert record.user_id == "-"  # type: ignore[attr-defined]
