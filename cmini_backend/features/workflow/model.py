"""
In-memory model of an API-format ComfyUI workflow.

    {
      "3": {"class_type": "KSampler",
            "inputs": {"seed": 42, "model": ["4", 0], ...},
            "_meta": {"title": "KSampler"}},
      ...
      "_comfyuimini_meta": {...}
    }

`load_workflow()` is the only place structural problems are detected; every
other module can assume a well-formed `WorkflowGraph`.
"""
from __future__ import annotations

import copy
import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, NamedTuple

from ... import config
from ...shared import get_logger

logger = get_logger(__name__)

EXTRA_KEY_PREFIX = "_"
_NODE_KEYS = frozenset({"class_type", "inputs", "_meta"})
_SCALAR_TYPES = (str, int, float, bool, type(None))
_EMPTY: Mapping[str, Any] = MappingProxyType({})


class MalformedWorkflowError(ValueError):
    """The supplied graph is structurally unusable."""

    def __init__(self, message: str, node_id: str | None = None):
        self.node_id = node_id
        prefix = f"node {node_id!r}: " if node_id is not None else ""
        super().__init__(f"{prefix}{message}")


class LinkRef(NamedTuple):
    """Connection to another node's output: `[source_node_id, output_index]`."""

    source: str | int
    output_index: int

    def to_json(self) -> list[Any]:
        return [self.source, self.output_index]


def _looks_like_node_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and value.strip() != ""


def is_link(value: Any) -> bool:
    """True for `[source_id, output_index]` pairs (list, tuple or LinkRef)."""
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return False
    index = value[1]
    return _looks_like_node_id(value[0]) and isinstance(index, int) and not isinstance(index, bool)


@dataclass(frozen=True, eq=False)
class NodeRecord:
    class_type: str
    inputs: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    meta: Mapping[str, Any] | None = None
    extra: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeRecord):
            return NotImplemented
        return (
            self.class_type == other.class_type
            and dict(self.inputs) == dict(other.inputs)
            and (None if self.meta is None else dict(self.meta)) == (None if other.meta is None else dict(other.meta))
            and dict(self.extra) == dict(other.extra)
        )

    __hash__ = None  # type: ignore[assignment]

    @property
    def title(self) -> str | None:
        if self.meta is None:
            return None
        title = self.meta.get("title")
        return title if isinstance(title, str) and title else None

    def is_linked(self, input_name: str) -> bool:
        return isinstance(self.inputs.get(input_name), LinkRef)

    def literal_inputs(self) -> list[str]:
        """Input names holding literal values (the ones a user can edit)."""
        return [name for name, value in self.inputs.items() if not isinstance(value, LinkRef)]

    def with_inputs(self, updates: Mapping[str, Any]) -> "NodeRecord":
        merged = dict(self.inputs)
        merged.update(updates)
        return replace(self, inputs=MappingProxyType(merged))


class WorkflowGraph(Mapping[str, NodeRecord]):
    """Immutable node-id -> NodeRecord mapping plus top-level `_` extras."""

    __slots__ = ("_nodes", "_extras")

    def __init__(self, nodes: Mapping[str, NodeRecord], extras: Mapping[str, Any] | None = None):
        self._nodes: Mapping[str, NodeRecord] = MappingProxyType(dict(nodes))
        self._extras: Mapping[str, Any] = MappingProxyType(dict(extras or {}))

    def __getitem__(self, node_id: str) -> NodeRecord:
        return self._nodes[node_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorkflowGraph):
            return NotImplemented
        return dict(self._nodes) == dict(other._nodes) and dict(self._extras) == dict(other._extras)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"WorkflowGraph(nodes={len(self._nodes)}, extras={sorted(self._extras)})"

    @property
    def extras(self) -> Mapping[str, Any]:
        return self._extras

    def editable_inputs(self, node_id: str) -> list[str]:
        node = self._nodes.get(node_id)
        return node.literal_inputs() if node is not None else []

    def with_inputs(self, updates_by_node: Mapping[str, Mapping[str, Any]]) -> "WorkflowGraph":
        """New graph with the given inputs replaced; untouched nodes are shared."""
        nodes = dict(self._nodes)
        for node_id, updates in updates_by_node.items():
            if updates:
                nodes[node_id] = nodes[node_id].with_inputs(updates)
        return WorkflowGraph(nodes, self._extras)

    def with_extras(self, **extras: Any) -> "WorkflowGraph":
        merged = dict(self._extras)
        merged.update(extras)
        return WorkflowGraph(self._nodes, merged)


def _reject_duplicate_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in pairs:
        if key in out:
            raise MalformedWorkflowError(f"duplicate key {key!r}")
        out[key] = value
    return out


def _parse_text(text: str | bytes) -> Any:
    try:
        return json.loads(text, object_pairs_hook=_reject_duplicate_keys)
    except MalformedWorkflowError:
        raise
    except (ValueError, UnicodeDecodeError) as exc:
        raise MalformedWorkflowError(f"invalid JSON: {exc}") from exc


def _looks_like_ui_export(data: Mapping[str, Any]) -> bool:
    return isinstance(data.get("nodes"), list) and "links" in data


def _load_input(node_id: str, name: Any, value: Any) -> Any:
    if not isinstance(name, str) or not name:
        raise MalformedWorkflowError(f"input name {name!r} is not a non-empty string", node_id)
    if isinstance(value, _SCALAR_TYPES):
        return value
    if is_link(value):
        return LinkRef(value[0], value[1])
    raise MalformedWorkflowError(
        f"input {name!r} must be a scalar or a [node_id, output_index] link, got {value!r}",
        node_id,
    )


def _load_node(node_id: str, raw: Any) -> NodeRecord:
    if not isinstance(raw, Mapping):
        raise MalformedWorkflowError(f"expected an object, got {type(raw).__name__}", node_id)

    class_type = raw.get("class_type")
    if not isinstance(class_type, str) or not class_type.strip():
        raise MalformedWorkflowError("missing class_type", node_id)

    raw_inputs = raw.get("inputs", {})
    if raw_inputs is None:
        raw_inputs = {}
    if not isinstance(raw_inputs, Mapping):
        raise MalformedWorkflowError("'inputs' must be an object", node_id)
    inputs = {name: _load_input(node_id, name, value) for name, value in raw_inputs.items()}

    raw_meta = raw.get("_meta")
    if raw_meta is not None and not isinstance(raw_meta, Mapping):
        raise MalformedWorkflowError("'_meta' must be an object", node_id)
    meta = MappingProxyType(copy.deepcopy(dict(raw_meta))) if raw_meta is not None else None

    extra = {k: copy.deepcopy(v) for k, v in raw.items() if k not in _NODE_KEYS}
    return NodeRecord(
        class_type=class_type,
        inputs=MappingProxyType(inputs),
        meta=meta,
        extra=MappingProxyType(extra) if extra else _EMPTY,
    )


def load_workflow(serialized: Mapping[str, Any] | str | bytes, *, max_nodes: int | None = None) -> WorkflowGraph:
    """
    Build a `WorkflowGraph` from API-format JSON (text or already-decoded).

    Raises:
        MalformedWorkflowError: when the data is not a usable API-format graph.
    """
    data = _parse_text(serialized) if isinstance(serialized, (str, bytes)) else serialized
    if not isinstance(data, Mapping):
        raise MalformedWorkflowError(f"workflow must be an object, got {type(data).__name__}")
    if _looks_like_ui_export(data):
        raise MalformedWorkflowError("this is a UI-format workflow; export it with 'Save (API Format)'")

    limit = int(max_nodes if max_nodes is not None else config.MAX_WORKFLOW_NODES)
    nodes: dict[str, NodeRecord] = {}
    extras: dict[str, Any] = {}
    for node_id, raw in data.items():
        if not isinstance(node_id, str) or not node_id:
            raise MalformedWorkflowError(f"node identifier {node_id!r} is not a non-empty string")
        if node_id.startswith(EXTRA_KEY_PREFIX):
            extras[node_id] = copy.deepcopy(raw)
            continue
        nodes[node_id] = _load_node(node_id, raw)
        if len(nodes) > limit:
            raise MalformedWorkflowError(f"workflow exceeds {limit} nodes")

    logger.debug("Loaded workflow with %d nodes", len(nodes))
    return WorkflowGraph(nodes, extras)


def _serialize_value(value: Any) -> Any:
    return value.to_json() if isinstance(value, LinkRef) else value


def _serialize_node(node: NodeRecord) -> dict[str, Any]:
    out: dict[str, Any] = {
        "inputs": {name: _serialize_value(value) for name, value in node.inputs.items()},
        "class_type": node.class_type,
    }
    if node.meta is not None:
        out["_meta"] = copy.deepcopy(dict(node.meta))
    for key, value in node.extra.items():
        out[key] = copy.deepcopy(value)
    return out


def serialize_workflow(graph: WorkflowGraph, *, include_extras: bool = True) -> dict[str, Any]:
    """Inverse of `load_workflow`: plain JSON-ready dict."""
    out: dict[str, Any] = {node_id: _serialize_node(node) for node_id, node in graph.items()}
    if include_extras:
        for key, value in graph.extras.items():
            out[key] = copy.deepcopy(value)
    return out


def serialize_workflow_json(graph: WorkflowGraph, *, indent: int | None = 2, include_extras: bool = True) -> str:
    return json.dumps(serialize_workflow(graph, include_extras=include_extras), indent=indent, ensure_ascii=False)
