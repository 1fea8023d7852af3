import json

import pytest

from cmini_backend.features.workflow import (
    LinkRef,
    MalformedWorkflowError,
    is_link,
    load_workflow,
    serialize_workflow,
    serialize_workflow_json,
)


def test_load_parses_links_and_literals(graph) -> None:
    ksampler = graph["3"]
    assert ksampler.class_type == "KSampler"
    assert ksampler.inputs["model"] == LinkRef("4", 0)
    assert ksampler.is_linked("model")
    assert not ksampler.is_linked("steps")
    assert ksampler.title == "KSampler"
    assert graph["5"].title is None
    assert graph.editable_inputs("6") == ["text"]
    assert graph.editable_inputs("missing") == []


def test_round_trip(graph, workflow_dict) -> None:
    data = serialize_workflow(graph)
    assert data == workflow_dict
    assert load_workflow(data) == graph
    assert load_workflow(serialize_workflow_json(graph)) == graph


def test_extras_and_unknown_node_keys_survive() -> None:
    raw = {
        "1": {"class_type": "Note", "inputs": {}, "is_changed": ["abc"]},
        "_comfyuimini_meta": {"title": "x", "input_options": []},
    }
    graph = load_workflow(raw)
    assert list(graph) == ["1"]
    assert graph.extras["_comfyuimini_meta"]["title"] == "x"
    assert serialize_workflow(graph) == raw
    assert "_comfyuimini_meta" not in serialize_workflow(graph, include_extras=False)


def test_load_accepts_bytes_and_missing_inputs() -> None:
    graph = load_workflow(b'{"1": {"class_type": "Note"}}')
    assert dict(graph["1"].inputs) == {}


def test_duplicate_node_ids_rejected() -> None:
    text = '{"1": {"class_type": "A", "inputs": {}}, "1": {"class_type": "B", "inputs": {}}}'
    with pytest.raises(MalformedWorkflowError, match="duplicate key"):
        load_workflow(text)


@pytest.mark.parametrize(
    "raw, node_id",
    [
        ({"1": "not a node"}, "1"),
        ({"1": {"inputs": {}}}, "1"),
        ({"1": {"class_type": "  ", "inputs": {}}}, "1"),
        ({"1": {"class_type": "A", "inputs": []}}, "1"),
        ({"1": {"class_type": "A", "inputs": {"x": {"nested": 1}}}}, "1"),
        ({"1": {"class_type": "A", "inputs": {"x": [1, 2, 3]}}}, "1"),
        ({"1": {"class_type": "A", "inputs": {"x": ["2", True]}}}, "1"),
        ({"1": {"class_type": "A", "inputs": {}, "_meta": "title"}}, "1"),
    ],
)
def test_structural_errors_name_the_node(raw, node_id) -> None:
    with pytest.raises(MalformedWorkflowError) as exc_info:
        load_workflow(raw)
    assert exc_info.value.node_id == node_id
    assert f"node '{node_id}'" in str(exc_info.value)


def test_whole_document_errors() -> None:
    with pytest.raises(MalformedWorkflowError, match="invalid JSON"):
        load_workflow("{not json")
    with pytest.raises(MalformedWorkflowError, match="must be an object"):
        load_workflow("[]")
    with pytest.raises(MalformedWorkflowError, match="UI-format"):
        load_workflow({"nodes": [], "links": [], "version": 0.4})


@pytest.mark.parametrize("raw", [{}, "{}", {"_comfyuimini_meta": {"title": "x"}}])
def test_empty_graph_round_trips(raw) -> None:
    graph = load_workflow(raw)
    assert len(graph) == 0
    data = serialize_workflow(graph)
    assert load_workflow(data) == graph
    assert load_workflow(serialize_workflow_json(graph)) == graph


def test_node_limit(workflow_dict) -> None:
    with pytest.raises(MalformedWorkflowError, match="exceeds 3 nodes"):
        load_workflow(workflow_dict, max_nodes=3)


def test_is_link() -> None:
    assert is_link(["4", 0])
    assert is_link([4, 1])
    assert not is_link(["4", "0"])
    assert not is_link(["", 0])
    assert not is_link([True, 0])
    assert not is_link("4")


def test_with_inputs_shares_untouched_nodes(graph) -> None:
    updated = graph.with_inputs({"3": {"steps": 30}})
    assert updated["3"].inputs["steps"] == 30
    assert graph["3"].inputs["steps"] == 20
    assert updated["4"] is graph["4"]
    assert updated != graph


def test_graph_is_immutable(graph) -> None:
    with pytest.raises(TypeError):
        graph["3"].inputs["steps"] = 1  # type: ignore[index]


def test_serialize_json_is_valid_json(graph) -> None:
    text = serialize_workflow_json(graph, indent=None)
    assert json.loads(text)["6"]["inputs"]["clip"] == ["4", 1]
