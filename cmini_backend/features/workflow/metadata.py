"""
ComfyUI Mini workflow metadata (`_comfyuimini_meta`).

Stored next to the nodes of an API-format workflow, it lists which literal
inputs the mobile UI shows, in which order, and how:

    "_comfyuimini_meta": {
      "title": "Portrait", "description": "",
      "input_options": [
        {"node_id": "3", "input_name_in_node": "seed", "title": "[3] seed",
         "disabled": false, "numberfield_format": "type"},
        ...
      ]
    }
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from ... import config
from ...shared import get_logger
from ..object_info import InputDescriptor
from .model import MalformedWorkflowError, WorkflowGraph

logger = get_logger(__name__)

METADATA_KEY = "_comfyuimini_meta"
TEXTFIELD_FORMATS = ("single", "multiline", "dropdown")
NUMBERFIELD_FORMATS = ("type", "slider")

Number = int | float
InputKey = tuple[str, str]


@dataclass(frozen=True)
class InputOption:
    node_id: str
    input_name_in_node: str
    title: str
    disabled: bool = False
    textfield_format: str | None = None
    numberfield_format: str | None = None
    min: Number | None = None
    max: Number | None = None

    @property
    def key(self) -> InputKey:
        return (self.node_id, self.input_name_in_node)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "node_id": self.node_id,
            "input_name_in_node": self.input_name_in_node,
            "title": self.title,
            "disabled": self.disabled,
        }
        for name in ("textfield_format", "numberfield_format", "min", "max"):
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        return out

    @classmethod
    def from_dict(cls, data: Any) -> "InputOption":
        if not isinstance(data, Mapping):
            raise MalformedWorkflowError(f"input option must be an object, got {type(data).__name__}")
        node_id = data.get("node_id")
        input_name = data.get("input_name_in_node")
        if not isinstance(node_id, str) or not node_id or not isinstance(input_name, str) or not input_name:
            raise MalformedWorkflowError("input option needs string 'node_id' and 'input_name_in_node'")

        textfield_format = data.get("textfield_format")
        if textfield_format is not None and textfield_format not in TEXTFIELD_FORMATS:
            raise MalformedWorkflowError(f"unknown textfield_format {textfield_format!r}", node_id)
        numberfield_format = data.get("numberfield_format")
        if numberfield_format is not None and numberfield_format not in NUMBERFIELD_FORMATS:
            raise MalformedWorkflowError(f"unknown numberfield_format {numberfield_format!r}", node_id)

        title = data.get("title")
        return cls(
            node_id=node_id,
            input_name_in_node=input_name,
            title=title if isinstance(title, str) and title else default_option_title(node_id, input_name),
            disabled=bool(data.get("disabled", False)),
            textfield_format=textfield_format,
            numberfield_format=numberfield_format,
            min=_bound(data.get("min")),
            max=_bound(data.get("max")),
        )


@dataclass(frozen=True)
class WorkflowMetadata:
    title: str = ""
    description: str = ""
    input_options: tuple[InputOption, ...] = field(default_factory=tuple)

    def keys(self) -> list[InputKey]:
        return [option.key for option in self.input_options]

    def option_for(self, node_id: str, input_name: str) -> InputOption | None:
        for option in self.input_options:
            if option.key == (node_id, input_name):
                return option
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "input_options": [option.to_dict() for option in self.input_options],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "WorkflowMetadata":
        if not isinstance(data, Mapping):
            raise MalformedWorkflowError(f"{METADATA_KEY} must be an object")
        raw_options = data.get("input_options") or []
        if not isinstance(raw_options, list):
            raise MalformedWorkflowError("'input_options' must be a list")
        title = data.get("title")
        description = data.get("description")
        return cls(
            title=title if isinstance(title, str) else "",
            description=description if isinstance(description, str) else "",
            input_options=tuple(InputOption.from_dict(item) for item in raw_options),
        )


def _bound(value: Any) -> Number | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def default_option_title(node_id: str, input_name: str, node_title: str | None = None) -> str:
    if node_title:
        return f"{node_title} {input_name}"
    return f"[{node_id}] {input_name}"


def _literal_keys(graph: WorkflowGraph) -> list[InputKey]:
    return [(node_id, name) for node_id, node in graph.items() for name in node.literal_inputs()]


def generate_metadata(
    graph: WorkflowGraph,
    title: str = "",
    description: str = "",
    hide_all: bool | None = None,
) -> WorkflowMetadata:
    """One option per literal input, in graph order."""
    disabled = config.HIDE_ALL_INPUTS_ON_AUTO_CONVERT if hide_all is None else bool(hide_all)
    options = tuple(
        InputOption(
            node_id=node_id,
            input_name_in_node=name,
            title=default_option_title(node_id, name, graph[node_id].title),
            disabled=disabled,
        )
        for node_id, name in _literal_keys(graph)
    )
    return WorkflowMetadata(title=title, description=description, input_options=options)


def sync_metadata(
    graph: WorkflowGraph,
    existing: WorkflowMetadata,
    *,
    hide_all: bool | None = None,
) -> tuple[WorkflowMetadata, bool]:
    """
    Bring `existing` in line with the graph's current literal inputs.

    Returns `(metadata, changed)`. When the set of inputs is unchanged the
    existing metadata is returned as-is (order included). Otherwise it is
    regenerated, keeping the user's settings for inputs that still exist.
    """
    current = set(_literal_keys(graph))
    known = set(existing.keys())
    if current == known:
        return existing, False

    logger.info(
        "Workflow metadata out of date (%d added, %d removed), regenerating",
        len(current - known),
        len(known - current),
    )
    previous = {option.key: option for option in existing.input_options}
    fresh = generate_metadata(graph, existing.title, existing.description, hide_all)
    merged = tuple(previous.get(option.key, option) for option in fresh.input_options)
    return replace(fresh, input_options=merged), True


def exposed_inputs(metadata: WorkflowMetadata) -> list[InputKey]:
    """(node_id, input_name) pairs the UI should render, in display order."""
    return [option.key for option in metadata.input_options if not option.disabled]


def effective_bounds(option: InputOption | None, descriptor: InputDescriptor | None) -> tuple[Number | None, Number | None]:
    """Slider bounds chosen by the user win over the schema's."""
    low = descriptor.min if descriptor is not None else None
    high = descriptor.max if descriptor is not None else None
    if option is not None:
        if option.min is not None:
            low = option.min
        if option.max is not None:
            high = option.max
    return low, high


def read_metadata(graph: WorkflowGraph) -> WorkflowMetadata | None:
    """Metadata embedded in the graph's extras, if any."""
    raw = graph.extras.get(METADATA_KEY)
    if raw is None:
        return None
    return WorkflowMetadata.from_dict(raw)


def attach_metadata(graph: WorkflowGraph, metadata: WorkflowMetadata) -> WorkflowGraph:
    return graph.with_extras(**{METADATA_KEY: metadata.to_dict()})
