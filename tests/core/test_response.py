import json

from cmini_backend.routes.core import response as resp_mod
from cmini_backend.shared import Result


def test_json_response_envelope() -> None:
    resp = resp_mod._json_response(Result.Err("VALIDATION_FAILED", "1 input value(s) rejected", failures=[{"f": 1}]))
    assert resp.status == 200
    payload = json.loads(resp.text)
    assert payload == {
        "ok": False,
        "data": None,
        "error": "1 input value(s) rejected",
        "code": "VALIDATION_FAILED",
        "meta": {"failures": [{"f": 1}]},
    }


def test_sanitize_json_payload_replaces_non_finite() -> None:
    out = resp_mod._sanitize_json_payload({"a": float("nan"), "b": (1.5, float("inf")), "c": [{"d": 2}]})
    assert out == {"a": None, "b": [1.5, None], "c": [{"d": 2}]}

