"""
Binding requests from URL query strings: `?3.seed=42&6.text=a%20cat`.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import parse_qsl

QueryPairs = Mapping[str, Any] | Iterable[tuple[str, Any]] | str

FIELD_SEPARATOR = "."


def _pairs(query: QueryPairs) -> Iterable[tuple[str, Any]]:
    if isinstance(query, str):
        return parse_qsl(query.lstrip("?"), keep_blank_values=True)
    if isinstance(query, Mapping):
        # MultiDict.items() yields every value, in order.
        return query.items()
    return query


def parse_binding_query(query: QueryPairs) -> dict[str, dict[str, Any]]:
    """
    Turn `nodeId.inputName=value` pairs into a binding request.

    Only the first `.` separates node id from input name. Keys without a
    separator or with an empty side are ignored; repeated keys keep the last value.
    """
    request: dict[str, dict[str, Any]] = {}
    for key, value in _pairs(query):
        node_id, sep, input_name = str(key).partition(FIELD_SEPARATOR)
        if not sep or not node_id or not input_name:
            continue
        request.setdefault(node_id, {})[input_name] = value
    return request


def merge_binding_requests(*requests: Mapping[str, Mapping[str, Any]] | None) -> dict[str, dict[str, Any]]:
    """Merge requests; later values override earlier ones per input."""
    merged: dict[str, dict[str, Any]] = {}
    for request in requests:
        if not request:
            continue
        for node_id, values in request.items():
            if not isinstance(values, Mapping):
                continue
            merged.setdefault(str(node_id), {}).update(values)
    return merged
