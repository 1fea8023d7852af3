"""
Route registration.
Collects every handler module into a RouteTableDef and builds the aiohttp app.
"""
from __future__ import annotations

from aiohttp import web

from .. import config
from ..features.object_info import ObjectInfoCache, get_object_info_cache
from ..observability import ensure_observability
from ..shared import get_logger
from .core import OBJECT_INFO_CACHE_KEY
from .handlers import register_inputs_info_routes, register_workflow_routes

logger = get_logger(__name__)


def register_all_routes(routes: web.RouteTableDef | None = None) -> web.RouteTableDef:
    """Register every handler on `routes` (a new table when omitted)."""
    if routes is None:
        routes = web.RouteTableDef()
    register_inputs_info_routes(routes)
    register_workflow_routes(routes)
    return routes


def create_app(cache: ObjectInfoCache | None = None) -> web.Application:
    """
    Standalone aiohttp application serving every route.

    Args:
        cache: Object-info cache to use; defaults to the process-wide one.
    """
    app = web.Application(client_max_size=config.MAX_JSON_BYTES)
    ensure_observability(app)
    app[OBJECT_INFO_CACHE_KEY] = cache if cache is not None else get_object_info_cache()
    app.add_routes(register_all_routes())
    logger.info("Routes registered (ComfyUI at %s)", config.COMFY_URL)
    return app
