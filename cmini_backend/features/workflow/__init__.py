"""Workflow graphs: loading, value binding, image references and UI metadata."""
from .binding import BindingValueError, ValidationFailure, apply_bindings, coerce_value
from .image_ref import (
    ImageRef,
    ImageReferenceError,
    compose_reference,
    display_url_for_reference,
    normalize_reference,
    parse_display_url,
    split_reference,
    to_display_url,
)
from .metadata import (
    METADATA_KEY,
    InputOption,
    WorkflowMetadata,
    attach_metadata,
    effective_bounds,
    exposed_inputs,
    generate_metadata,
    read_metadata,
    sync_metadata,
)
from .model import (
    LinkRef,
    MalformedWorkflowError,
    NodeRecord,
    WorkflowGraph,
    is_link,
    load_workflow,
    serialize_workflow,
    serialize_workflow_json,
)
from .query_params import merge_binding_requests, parse_binding_query

__all__ = [
    "BindingValueError",
    "ImageRef",
    "ImageReferenceError",
    "InputOption",
    "LinkRef",
    "METADATA_KEY",
    "MalformedWorkflowError",
    "NodeRecord",
    "ValidationFailure",
    "WorkflowGraph",
    "WorkflowMetadata",
    "apply_bindings",
    "attach_metadata",
    "coerce_value",
    "compose_reference",
    "display_url_for_reference",
    "effective_bounds",
    "exposed_inputs",
    "generate_metadata",
    "is_link",
    "load_workflow",
    "merge_binding_requests",
    "normalize_reference",
    "parse_binding_query",
    "parse_display_url",
    "read_metadata",
    "serialize_workflow",
    "serialize_workflow_json",
    "split_reference",
    "sync_metadata",
    "to_display_url",
]
