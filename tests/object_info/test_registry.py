import pytest

from cmini_backend.features.object_info import InputRegistry
from cmini_backend.shared import InputKind


def test_build_and_lookup(registry) -> None:
    steps = registry.lookup("KSampler", "steps")
    assert steps is not None
    assert steps.kind == InputKind.INT
    assert (steps.min, steps.max) == (1, 100)

    assert registry.lookup("KSampler", "nope") is None
    assert registry.lookup("NoSuchNode", "steps") is None


def test_groups_set_required_and_hidden(registry) -> None:
    invert = registry.lookup("ImageBlend", "invert")
    assert invert is not None
    assert invert.required is False
    assert invert.kind == InputKind.BOOLEAN

    prompt = registry.lookup("SaveImage", "prompt")
    assert prompt is not None
    assert prompt.user_accessible is False


def test_inputs_for_lists_required_first(registry) -> None:
    names = [d.name for d in registry.inputs_for("ImageBlend")]
    assert names == ["blend_factor", "invert", "mode"]
    assert registry.inputs_for("Unknown") == []


def test_malformed_entries_are_skipped() -> None:
    raw = {
        "Good": {"input": {"required": {"x": ["INT", {}]}}},
        "NotAnObject": ["oops"],
        "BadInput": {"input": "oops"},
        "BadGroup": {"input": {"required": "oops", "optional": {"y": ["BOOLEAN"]}}},
        "NoInputs": {"output": ["IMAGE"]},
    }
    registry = InputRegistry.build(raw)
    assert "Good" in registry
    assert "NotAnObject" not in registry
    assert "BadInput" not in registry
    assert ("BadGroup", "y") in registry
    assert registry.inputs_for("NoInputs") == []
    assert len(registry) == 2


def test_required_wins_over_duplicate_optional_name() -> None:
    raw = {"N": {"input": {"required": {"x": ["INT", {}]}, "optional": {"x": ["STRING", {}]}}}}
    registry = InputRegistry.build(raw)
    x = registry.lookup("N", "x")
    assert x is not None and x.kind == InputKind.INT and x.required


def test_to_dict_and_iteration(registry, object_info) -> None:
    payload = registry.to_dict()
    assert set(payload) == set(object_info)
    assert payload["Sampler"]["resolution"]["list"] == ["512", "768", "1024"]
    assert payload["LoadImage"]["image"]["imageUpload"] is True
    assert sum(1 for _ in registry) == len(registry)
    assert registry.node_types()[0] == "KSampler"


def test_registry_is_read_only(registry) -> None:
    with pytest.raises(TypeError):
        registry._by_node["KSampler"]["steps"] = None  # type: ignore[index]
