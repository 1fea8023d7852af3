"""
Workflow endpoints: bind user values, generate or refresh UI metadata.
"""
from collections.abc import Mapping
from typing import Any

from aiohttp import web

from ...features.workflow import (
    MalformedWorkflowError,
    WorkflowGraph,
    WorkflowMetadata,
    apply_bindings,
    exposed_inputs,
    generate_metadata,
    load_workflow,
    merge_binding_requests,
    parse_binding_query,
    read_metadata,
    serialize_workflow,
    sync_metadata,
)
from ...shared import ErrorCode, Result, get_logger, sanitize_error_message
from ...utils import parse_bool
from ..core import _json_response, _read_json, _require_registry

logger = get_logger(__name__)


def _load_graph(payload: Mapping[str, Any]) -> Result[WorkflowGraph]:
    raw = payload.get("workflow")
    if raw is None:
        return Result.Err(ErrorCode.INVALID_INPUT, "Missing 'workflow'")
    if not isinstance(raw, (dict, str)):
        return Result.Err(ErrorCode.INVALID_INPUT, "'workflow' must be an object or JSON text")
    try:
        return Result.Ok(load_workflow(raw))
    except MalformedWorkflowError as exc:
        logger.debug("Rejected workflow: %s", exc)
        return Result.Err(
            ErrorCode.MALFORMED_WORKFLOW,
            sanitize_error_message(exc, "Malformed workflow"),
            node_id=exc.node_id,
        )


def _body_values(payload: Mapping[str, Any]) -> Result[dict]:
    values = payload.get("values")
    if values is None:
        return Result.Ok({})
    if not isinstance(values, dict):
        return Result.Err(ErrorCode.INVALID_INPUT, "'values' must be an object of node id -> inputs")
    for node_id, inputs in values.items():
        if not isinstance(inputs, dict):
            return Result.Err(ErrorCode.INVALID_INPUT, f"'values.{node_id}' must be an object of input -> value")
    return Result.Ok(values)


def _optional_flag(raw: Any) -> bool | None:
    if raw is None or raw == "":
        return None
    return parse_bool(raw)


def _text_field(payload: Mapping[str, Any], name: str) -> str:
    value = payload.get(name)
    return value.strip() if isinstance(value, str) else ""


def register_workflow_routes(routes: web.RouteTableDef) -> None:
    @routes.post("/api/workflow/bind")
    async def bind_workflow(request: web.Request) -> web.Response:
        """
        Merge values into an API-format workflow.

        Body: `{"workflow": {...}, "values": {"3": {"seed": "42"}}}`.
        Query parameters `?3.seed=42` are merged over body values;
        `?strict=1` rejects inputs missing from object_info.
        """
        body = await _read_json(request)
        if not body.ok or body.data is None:
            return _json_response(body)
        payload = body.data

        graph = _load_graph(payload)
        if not graph.ok or graph.data is None:
            return _json_response(graph)
        values = _body_values(payload)
        if not values.ok or values.data is None:
            return _json_response(values)

        binding_request = merge_binding_requests(values.data, parse_binding_query(request.query))
        strict = _optional_flag(request.query.get("strict"))

        registry = await _require_registry(request)
        if not registry.ok or registry.data is None:
            return _json_response(registry)

        bound = apply_bindings(graph.data, binding_request, registry.data, strict_unknown=strict)
        if not bound.ok or bound.data is None:
            return _json_response(bound)
        return _json_response(Result.Ok(serialize_workflow(bound.data), **bound.meta))

    @routes.post("/api/workflow/metadata")
    async def workflow_metadata(request: web.Request) -> web.Response:
        """
        Generate `_comfyuimini_meta` for a workflow, or sync existing metadata.

        Existing metadata comes from the body's `metadata` field or from the
        workflow itself; without either, fresh metadata is generated.
        """
        body = await _read_json(request)
        if not body.ok or body.data is None:
            return _json_response(body)
        payload = body.data

        graph_result = _load_graph(payload)
        if not graph_result.ok or graph_result.data is None:
            return _json_response(graph_result)
        graph = graph_result.data
        hide_all = _optional_flag(payload.get("hide_all"))

        try:
            raw_existing = payload.get("metadata")
            existing = WorkflowMetadata.from_dict(raw_existing) if raw_existing is not None else read_metadata(graph)
        except MalformedWorkflowError as exc:
            return _json_response(
                Result.Err(ErrorCode.MALFORMED_WORKFLOW, sanitize_error_message(exc, "Invalid workflow metadata"))
            )

        if existing is None:
            metadata = generate_metadata(
                graph,
                _text_field(payload, "title"),
                _text_field(payload, "description"),
                hide_all,
            )
            changed = True
        else:
            metadata, changed = sync_metadata(graph, existing, hide_all=hide_all)

        return _json_response(
            Result.Ok(
                {
                    "metadata": metadata.to_dict(),
                    "changed": changed,
                    "exposed": [list(key) for key in exposed_inputs(metadata)],
                }
            )
        )
