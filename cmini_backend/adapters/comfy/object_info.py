"""
Fetch the raw `/object_info` schema dump from a running ComfyUI instance.
"""
from __future__ import annotations

import asyncio
from typing import Any

from aiohttp import ClientError, ClientSession, ClientTimeout

from ... import config
from ...shared import ErrorCode, Result, get_logger, sanitize_error_message

logger = get_logger(__name__)

OBJECT_INFO_PATH = "/object_info"


async def _get_json(session: ClientSession, url: str, timeout: float) -> Any:
    async with session.get(url, timeout=ClientTimeout(total=timeout)) as resp:
        if resp.status != 200:
            raise RuntimeError(f"ComfyUI returned HTTP {resp.status} for {OBJECT_INFO_PATH}")
        return await resp.json(content_type=None)


async def fetch_object_info(
    base_url: str | None = None,
    *,
    timeout: float | None = None,
    session: ClientSession | None = None,
) -> Result[dict[str, Any]]:
    """
    Download the node schema dump.

    Returns:
        Result.Ok(dict) keyed by node type, or Result.Err with
        TIMEOUT / DEGRADED / INVALID_JSON.
    """
    base = (base_url or config.COMFY_URL).rstrip("/")
    url = f"{base}{OBJECT_INFO_PATH}"
    limit = float(timeout if timeout is not None else config.OBJECT_INFO_TIMEOUT)

    try:
        if session is not None:
            payload = await _get_json(session, url, limit)
        else:
            async with ClientSession() as own_session:
                payload = await _get_json(own_session, url, limit)
    except asyncio.TimeoutError:
        logger.warning("Timeout fetching object_info from %s", base)
        return Result.Err(ErrorCode.TIMEOUT, "Timeout while contacting ComfyUI")
    except (ClientError, RuntimeError, ValueError) as exc:
        logger.warning("Failed to fetch object_info from %s: %s", base, exc)
        return Result.Err(
            ErrorCode.DEGRADED,
            sanitize_error_message(exc, "Could not get ComfyUI object info"),
        )

    if not isinstance(payload, dict):
        return Result.Err(ErrorCode.INVALID_JSON, "ComfyUI object_info payload is not an object")
    logger.debug("Fetched object_info for %d node types", len(payload))
    return Result.Ok(payload)
