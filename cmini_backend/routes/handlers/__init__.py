"""
Route handlers, one module per feature.
"""
from .inputs_info import register_inputs_info_routes
from .workflow import register_workflow_routes

__all__ = [
    "register_inputs_info_routes",
    "register_workflow_routes",
]
