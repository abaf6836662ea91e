from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from types import MappingProxyType

import pytest

from cabinet_pm.logging import JsonFormatter, LogConfig, PlainFormatter, add_run_log_file, setup_logging
from cabinet_pm.normalize.schema import ChecklistKey, SessionInfo, Status
from cabinet_pm.util.errors import ConfigError, ExitCode, ExportError, HistoryError, InputError, as_exit_code
from cabinet_pm.util.formatting import format_date, format_number, format_status, format_value, parse_reading
from cabinet_pm.util.serialization import REDACTED_VALUE, sanitize_for_json


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="unit",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_sanitize_for_json_redacts_sensitive_fields() -> None:
    payload = {
        "password": "secret",
        "apiToken": "abc",
        "nested": {"session_cookie": "xyz", "safe": 1},
    }

    sanitized = sanitize_for_json(payload)

    assert sanitized["password"] == REDACTED_VALUE
    assert sanitized["apiToken"] == REDACTED_VALUE
    assert sanitized["nested"]["session_cookie"] == REDACTED_VALUE
    assert sanitized["nested"]["safe"] == 1


def test_sanitize_for_json_handles_report_types() -> None:
    ts = datetime(2024, 1, 1, tzinfo=timezone.utc)
    payload = {
        "when": ts,
        "day": date(2025, 3, 5),
        "blob": b"bytes",
        "checklist": MappingProxyType({ChecklistKey.CABINET_FANS: Status.FAIL}),
        "rows": (("a", 1),),
    }

    sanitized = sanitize_for_json(payload)

    assert sanitized["when"] == "2024-01-01T00:00:00+00:00"
    assert sanitized["day"] == "2025-03-05"
    assert sanitized["blob"] == "bytes"
    assert sanitized["checklist"] == {"cabinet_fans": "fail"}
    assert sanitized["rows"] == [["a", 1]]


def test_sanitize_for_json_dataclass() -> None:
    sanitized = sanitize_for_json(SessionInfo(session_id="s-1", session_name="PM"))
    assert sanitized["session_id"] == "s-1"
    assert sanitized["session_name"] == "PM"


def test_json_formatter_skips_non_serializable_extras() -> None:
    formatter = JsonFormatter()
    record = _record()
    record.good = {"a": 1, "b": [1, 2]}
    record.bad = {"obj": object()}

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["good"] == {"a": 1, "b": [1, 2]}
    assert "bad" not in payload


def test_plain_formatter_prefixes_step_and_duration() -> None:
    record = _record("Report written")
    record.step = "export"
    record.phase = "complete"
    record.duration_ms = 12

    line = PlainFormatter().format(record)

    assert line.endswith("INFO unit: [export:complete] Report written (duration_ms=12)")


def test_add_run_log_file_writes(tmp_path) -> None:
    root = logging.getLogger()
    handlers = list(root.handlers)
    setattr(setup_logging, "_configured", False)
    try:
        setup_logging(LogConfig(level="INFO", json_logs=False))
        log_path = tmp_path / "logs" / "debug.log"
        add_run_log_file(log_path)
        add_run_log_file(log_path)
        assert sum(isinstance(h, logging.FileHandler) for h in root.handlers) == 1

        logging.getLogger("unit.test").info("file log test")

        assert "file log test" in log_path.read_text(encoding="utf-8")
    finally:
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers = handlers
        setattr(setup_logging, "_configured", False)


@pytest.mark.parametrize(
    "exc,code",
    [
        (ConfigError("x"), ExitCode.CONFIG_ERROR),
        (ValueError("x"), ExitCode.CONFIG_ERROR),
        (InputError("x"), ExitCode.INPUT_ERROR),
        (ExportError("x"), ExitCode.EXPORT_ERROR),
        (HistoryError("x"), ExitCode.RUNTIME_ERROR),
    ],
)
def test_as_exit_code(exc, code) -> None:
    assert as_exit_code(exc) == int(code)


def test_as_exit_code_unknown_error() -> None:
    assert as_exit_code(RuntimeError("boom")) == 1


def test_reading_helpers() -> None:
    assert parse_reading(" 23.9 ") == 23.9
    assert parse_reading("30V") == 30.0
    assert parse_reading(".5") == 0.5
    assert parse_reading("") is None
    assert parse_reading("n/a") is None
    assert parse_reading(float("nan")) is None
    assert parse_reading(True) is None
    assert format_number(142.0) == "142"
    assert format_number(12.25) == "12.25"
    assert format_value(None) == "N/A"
    assert format_value(120.0) == "120"


def test_display_helpers() -> None:
    assert format_date("2025-03-05") == "March 5, 2025"
    assert format_date(None) == "N/A"
    assert format_date("sometime") == "sometime"
    assert format_status(Status.PASS) == "Pass"
    assert format_status(None) == "N/A"
