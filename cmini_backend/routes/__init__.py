"""
HTTP routes for the ComfyUI Mini backend.
Importing this package is side-effect free; route registration is explicit.
"""
from .registry import create_app, register_all_routes

__all__ = [
    "create_app",
    "register_all_routes",
]
