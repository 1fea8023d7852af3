import json

import pytest
from aiohttp import web
from aiohttp.test_utils import make_mocked_request

from cmini_backend.features.object_info import ObjectInfoCache
from cmini_backend.routes.core import OBJECT_INFO_CACHE_KEY
from cmini_backend.routes.handlers import inputs_info
from cmini_backend.shared import Result


def _app(cache: ObjectInfoCache) -> web.Application:
    app = web.Application()
    app[OBJECT_INFO_CACHE_KEY] = cache
    routes = web.RouteTableDef()
    inputs_info.register_inputs_info_routes(routes)
    app.add_routes(routes)
    return app


async def _call(app: web.Application, method: str, path: str) -> dict:
    req = make_mocked_request(method, path, app=app)
    match = await app.router.resolve(req)
    resp = await match.handler(req)
    return json.loads(resp.text)


@pytest.mark.asyncio
async def test_inputs_info_returns_processed_object_info(object_info_cache) -> None:
    payload = await _call(_app(object_info_cache), "GET", "/comfyui/inputsinfo")
    assert payload["ok"] is True
    data = payload["data"]
    assert data["Sampler"]["resolution"] == {
        "type": "ARRAY",
        "userAccessible": True,
        "list": ["512", "768", "1024"],
        "required": True,
    }
    assert data["KSampler"]["steps"]["max"] == 100
    assert data["KSampler"]["model"]["userAccessible"] is False
    assert payload["meta"]["node_types"] == len(data)


@pytest.mark.asyncio
async def test_inputs_info_single_node_type(object_info_cache) -> None:
    app = _app(object_info_cache)
    payload = await _call(app, "GET", "/comfyui/inputsinfo?node_type=ImageBlend")
    assert list(payload["data"]["ImageBlend"]) == ["blend_factor", "invert", "mode"]

    missing = await _call(app, "GET", "/comfyui/inputsinfo?node_type=Nope")
    assert missing["ok"] is False
    assert missing["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_inputs_info_reports_unavailable_schema() -> None:
    async def _loader():
        return Result.Err("DEGRADED", "Could not get ComfyUI object info: connection refused")

    payload = await _call(_app(ObjectInfoCache(loader=_loader)), "GET", "/comfyui/inputsinfo")
    assert payload["ok"] is False
    assert payload["code"] == "SCHEMA_UNAVAILABLE"
    assert payload["meta"]["upstream_code"] == "DEGRADED"


@pytest.mark.asyncio
async def test_refresh_forces_rebuild(object_info_cache) -> None:
    app = _app(object_info_cache)
    await _call(app, "GET", "/comfyui/inputsinfo")
    payload = await _call(app, "POST", "/comfyui/inputsinfo/refresh")
    assert payload["ok"] is True
    assert payload["data"]["node_types"] == 8
    assert object_info_cache.calls["count"] == 2
