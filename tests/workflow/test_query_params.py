from multidict import MultiDict

from cmini_backend.features.workflow import merge_binding_requests, parse_binding_query


def test_parse_query_string() -> None:
    request = parse_binding_query("?3.seed=42&6.text=a%20cat&3.steps=20")
    assert request == {"3": {"seed": "42", "steps": "20"}, "6": {"text": "a cat"}}


def test_splits_on_first_dot_only() -> None:
    assert parse_binding_query("12.lora.strength=0.8") == {"12": {"lora.strength": "0.8"}}


def test_ignores_keys_without_node_or_input() -> None:
    assert parse_binding_query("strict=1&.seed=1&3.=x&plain") == {}


def test_last_value_wins_and_blank_values_kept() -> None:
    query = MultiDict([("3.seed", "1"), ("3.seed", "2"), ("6.text", "")])
    assert parse_binding_query(query) == {"3": {"seed": "2"}, "6": {"text": ""}}
    assert parse_binding_query([("3.seed", "7")]) == {"3": {"seed": "7"}}


def test_merge_later_overrides_earlier() -> None:
    body = {"3": {"seed": 1, "steps": 20}, "6": {"text": "cat"}}
    query = {"3": {"seed": "99"}}
    merged = merge_binding_requests(body, None, query)
    assert merged == {"3": {"seed": "99", "steps": 20}, "6": {"text": "cat"}}
    assert body["3"]["seed"] == 1
