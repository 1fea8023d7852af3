"""
Process-wide owner of the input registry.

The registry is built lazily on first use and kept until someone calls
`invalidate()` or asks for a forced refresh (e.g. after installing a node pack).
"""
from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from ...shared import ErrorCode, Result, get_logger
from .registry import InputRegistry

logger = get_logger(__name__)

SchemaLoader = Callable[[], Awaitable[Result[Mapping[str, Any]]]]


async def _default_loader() -> Result[Mapping[str, Any]]:
    from ...adapters.comfy import fetch_object_info

    return await fetch_object_info()


class ObjectInfoCache:
    """Lazily built, explicitly invalidated holder of one `InputRegistry`."""

    def __init__(self, loader: SchemaLoader | None = None):
        self._loader: SchemaLoader = loader or _default_loader
        self._registry: InputRegistry | None = None
        self._last_error: str | None = None
        self._lock: asyncio.Lock | None = None
        self._lock_guard = threading.Lock()

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is not None:
            return self._lock
        with self._lock_guard:
            if self._lock is None:
                self._lock = asyncio.Lock()
            return self._lock

    def peek(self) -> InputRegistry | None:
        """Current registry without triggering a build."""
        return self._registry

    @property
    def last_error(self) -> str | None:
        return self._last_error

    def invalidate(self) -> None:
        """Drop the cached registry; the next `get()` rebuilds it."""
        if self._registry is not None:
            logger.info("Input registry invalidated")
        self._registry = None

    async def get(self, force: bool = False) -> Result[InputRegistry]:
        """
        Return the registry, building it if needed.

        A failed rebuild leaves the previous registry in place.
        """
        registry = self._registry
        if registry is not None and not force:
            return Result.Ok(registry)

        async with self._get_lock():
            if self._registry is not None and not force:
                return Result.Ok(self._registry)

            loaded = await self._loader()
            if not loaded.ok or not isinstance(loaded.data, Mapping):
                self._last_error = loaded.error or "object_info unavailable"
                logger.error("Failed to build input registry: %s", self._last_error)
                return Result.Err(
                    ErrorCode.SCHEMA_UNAVAILABLE,
                    "Could not get ComfyUI object info.",
                    detail=self._last_error,
                    upstream_code=loaded.code,
                )

            self._registry = InputRegistry.build(loaded.data)
            self._last_error = None
            return Result.Ok(self._registry)


_cache: ObjectInfoCache | None = None
_cache_guard = threading.Lock()


def get_object_info_cache() -> ObjectInfoCache:
    """The process default cache, created on first access."""
    global _cache
    if _cache is not None:
        return _cache
    with _cache_guard:
        if _cache is None:
            _cache = ObjectInfoCache()
        return _cache


def reset_object_info_cache(loader: SchemaLoader | None = None) -> ObjectInfoCache:
    """Replace the process default cache (new loader, or a clean slate)."""
    global _cache
    with _cache_guard:
        _cache = ObjectInfoCache(loader)
        return _cache
