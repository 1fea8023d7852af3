import json
import logging

import pytest

from cmini_shared import ErrorCode, InputKind, Result, get_logger, log_structured, request_id_var, sanitize_error_message
from cmini_shared.log import CorrelationFilter, EmojiFormatter, _short_name


def test_result_helpers() -> None:
    ok = Result.Ok(2, source="test")
    assert ok.ok and ok.code == "OK" and ok.meta == {"source": "test"}
    assert ok.map(lambda v: v * 3).data == 6
    assert ok.unwrap() == 2

    err = Result.Err(ErrorCode.VALIDATION_FAILED, "bad", failures=[])
    assert err.code == "VALIDATION_FAILED"
    assert err.map(lambda v: v * 3) is err
    assert err.unwrap_or(5) == 5
    with pytest.raises(ValueError, match="VALIDATION_FAILED"):
        err.unwrap()


def test_input_kind_numeric() -> None:
    assert InputKind.INT.is_numeric and InputKind.FLOAT.is_numeric
    assert not InputKind.ARRAY.is_numeric
    assert InputKind("BOOLEAN") is InputKind.BOOLEAN


def test_short_logger_names() -> None:
    assert _short_name("cmini_backend.features.workflow.binding") == "features.workflow.binding"
    assert _short_name("cmini_backend.routes.handlers.workflow") == "routes.handlers.workflow"
    assert _short_name("cmini_backend.config") == "config"
    assert get_logger("cmini_backend.features.object_info.cache").name == "cmini.features.object_info.cache"


def test_formatter_includes_request_id() -> None:
    record = logging.LogRecord("cmini.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    token = request_id_var.set("rid-1")
    try:
        CorrelationFilter().filter(record)
    finally:
        request_id_var.reset(token)
    line = EmojiFormatter().format(record)
    assert "[rid-1]" in line
    assert line.endswith("hello world")


def test_log_structured_emits_json() -> None:
    records = []

    class _Capture(logging.Handler):
        def emit(self, record):
            records.append(record.getMessage())

    logger = get_logger("cmini_backend.tests.structured")
    handler = _Capture()
    logger.addHandler(handler)
    try:
        log_structured(logger, logging.WARNING, "Binding rejected", failures=[{"field": "3.steps"}])
    finally:
        logger.removeHandler(handler)
    payload = json.loads(records[0])
    assert payload["message"] == "Binding rejected"
    assert payload["context"]["failures"][0]["field"] == "3.steps"


def test_sanitize_error_message_masks_paths() -> None:
    msg = sanitize_error_message(OSError("cannot open /home/user/models/x.ckpt"), "Load failed")
    assert msg.startswith("Load failed: ")
    assert "/home/user" not in msg
    assert "[path]" in msg
    assert sanitize_error_message(None, "Load failed") == "Load failed"
    assert len(sanitize_error_message("x" * 1000, "E")) <= 3 + 200
