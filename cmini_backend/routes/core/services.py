"""
Access to the object-info cache from route handlers.
"""
from aiohttp import web

from ...features.object_info import InputRegistry, ObjectInfoCache, get_object_info_cache
from ...shared import Result

OBJECT_INFO_CACHE_KEY: web.AppKey[ObjectInfoCache] = web.AppKey("cmini_object_info_cache", ObjectInfoCache)


def _object_info_cache(request: web.Request) -> ObjectInfoCache:
    """The app's cache when `create_app()` installed one, else the process default."""
    cache = request.app.get(OBJECT_INFO_CACHE_KEY)
    return cache if cache is not None else get_object_info_cache()


async def _require_registry(request: web.Request, *, force: bool = False) -> Result[InputRegistry]:
    return await _object_info_cache(request).get(force=force)
