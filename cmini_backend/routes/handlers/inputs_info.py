"""
Processed object info for the UI.
"""
from aiohttp import web

from ...shared import ErrorCode, Result, get_logger
from ..core import _json_response, _require_registry

logger = get_logger(__name__)


def register_inputs_info_routes(routes: web.RouteTableDef) -> None:
    @routes.get("/comfyui/inputsinfo")
    async def get_inputs_info(request: web.Request) -> web.Response:
        """
        Normalized inputs of every node type, or of one with `?node_type=`.
        """
        result = await _require_registry(request)
        if not result.ok or result.data is None:
            return _json_response(result)
        registry = result.data

        node_type = (request.query.get("node_type") or "").strip()
        if node_type:
            if node_type not in registry:
                return _json_response(Result.Err(ErrorCode.NOT_FOUND, f"Unknown node type: {node_type}"))
            inputs = {descriptor.name: descriptor.to_dict() for descriptor in registry.inputs_for(node_type)}
            return _json_response(Result.Ok({node_type: inputs}))

        return _json_response(
            Result.Ok(registry.to_dict(), node_types=len(registry.node_types()), inputs=len(registry))
        )

    @routes.post("/comfyui/inputsinfo/refresh")
    async def refresh_inputs_info(request: web.Request) -> web.Response:
        """Rebuild the registry from ComfyUI (after installing node packs)."""
        result = await _require_registry(request, force=True)
        if not result.ok or result.data is None:
            return _json_response(result)
        registry = result.data
        logger.info("Input registry refreshed on request")
        return _json_response(Result.Ok({"node_types": len(registry.node_types()), "inputs": len(registry)}))
