"""
Core utilities for route handlers.
"""
from .request_json import _read_json
from .response import _json_response
from .services import OBJECT_INFO_CACHE_KEY, _require_registry

__all__ = [
    "OBJECT_INFO_CACHE_KEY",
    "_json_response",
    "_read_json",
    "_require_registry",
]
