"""
Observability helpers (request id + timing) for aiohttp routes.
"""
from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from aiohttp import web

from .shared import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_APPKEY_OBS_INSTALLED = web.AppKey("cmini_observability_installed", bool)
_MAX_REQUEST_ID_LEN = 128


def _new_request_id() -> str:
    return uuid4().hex


def _get_request_id(request: web.Request) -> str:
    rid = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if rid and len(rid) <= _MAX_REQUEST_ID_LEN and rid.isprintable():
        return rid
    return _new_request_id()


def _emit_request_log(request: web.Request, *, status: int | None, duration_ms: float, error: str | None) -> None:
    fields: dict[str, Any] = {
        "method": request.method,
        "path": request.path,
        "status": status,
        "duration_ms": round(duration_ms, 1),
    }
    suffix = ""
    if error:
        fields["error"] = error
        suffix = f": {error}"
    if status is not None and status >= 500:
        logger.error("%s %s -> %s (%.1fms)%s", request.method, request.path, status, duration_ms, suffix, extra=fields)
    elif status is not None and status >= 400:
        logger.warning("%s %s -> %s (%.1fms)", request.method, request.path, status, duration_ms, extra=fields)
    else:
        logger.debug("%s %s -> %s (%.1fms)", request.method, request.path, status, duration_ms)


@web.middleware
async def request_context_middleware(request: web.Request, handler):
    """Add request-id correlation and lightweight request logging."""
    rid = _get_request_id(request)
    request["cmini_request_id"] = rid
    token = request_id_var.set(rid)
    start = time.perf_counter()
    status: int | None = None
    error: str | None = None
    try:
        response = await handler(request)
        status = int(getattr(response, "status", 200) or 200)
        response.headers[REQUEST_ID_HEADER] = rid
        return response
    except web.HTTPException as exc:
        status = exc.status
        exc.headers[REQUEST_ID_HEADER] = rid
        raise
    except Exception as exc:
        status = 500
        error = f"{exc.__class__.__name__}: {exc}"
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000.0
        request_id_var.reset(token)
        _emit_request_log(request, status=status, duration_ms=duration_ms, error=error)


def ensure_observability(app: web.Application) -> None:
    """Install the middleware once per app."""
    if app.get(_APPKEY_OBS_INSTALLED):
        return
    app[_APPKEY_OBS_INSTALLED] = True
    app.middlewares.append(request_context_middleware)
