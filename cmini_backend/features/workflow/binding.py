"""
Value binding: merge user-supplied values into a workflow graph.

Values arrive as `{node_id: {input_name: raw_value}}`, usually strings from form
fields or URL query parameters. Each one is coerced according to the input's
normalized descriptor; the result is a new graph or the full list of fields
that could not be coerced. Nothing is applied unless everything is valid.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, NamedTuple

from ... import config
from ...shared import ErrorCode, InputKind, Result, get_logger, log_structured
from ..object_info import InputDescriptor, InputRegistry
from .image_ref import ImageReferenceError, display_url_for_reference, normalize_reference
from .model import WorkflowGraph

logger = get_logger(__name__)

BindingRequest = Mapping[str, Mapping[str, Any]]

_TRUE_TEXT = "true"
_FALSE_TEXT = "false"
_MAX_REPORTED_VALUE_LEN = 80


class BindingValueError(ValueError):
    """A supplied value does not fit its input descriptor."""


class ValidationFailure(NamedTuple):
    node_id: str
    input_name: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {
            "node_id": self.node_id,
            "input_name": self.input_name,
            "field": f"{self.node_id}.{self.input_name}",
            "reason": self.reason,
        }


def _show(value: Any) -> str:
    text = repr(value)
    if len(text) > _MAX_REPORTED_VALUE_LEN:
        return text[: _MAX_REPORTED_VALUE_LEN - 3] + "..."
    return text


def _parse_int(raw: Any) -> int:
    if isinstance(raw, bool):
        raise BindingValueError(f"expected an integer, got {_show(raw)}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        number = raw
    elif isinstance(raw, str):
        text = raw.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            raise BindingValueError(f"expected an integer, got {_show(raw)}") from None
    else:
        raise BindingValueError(f"expected an integer, got {_show(raw)}")
    if not math.isfinite(number) or not number.is_integer():
        raise BindingValueError(f"expected an integer, got {_show(raw)}")
    return int(number)


def _parse_float(raw: Any) -> float:
    if isinstance(raw, bool):
        raise BindingValueError(f"expected a number, got {_show(raw)}")
    if isinstance(raw, (int, float)):
        number = float(raw)
    elif isinstance(raw, str):
        try:
            number = float(raw.strip())
        except ValueError:
            raise BindingValueError(f"expected a number, got {_show(raw)}") from None
    else:
        raise BindingValueError(f"expected a number, got {_show(raw)}")
    if not math.isfinite(number):
        raise BindingValueError(f"expected a finite number, got {_show(raw)}")
    return number


def _clamp(value: int | float, descriptor: InputDescriptor) -> int | float:
    # Only clamp into a fully defined range.
    if not descriptor.has_bounds:
        return value
    low, high = descriptor.min, descriptor.max
    assert low is not None and high is not None
    if low > high:
        return value
    if descriptor.kind == InputKind.INT:
        # Whole-number range inside fractional bounds.
        int_low, int_high = math.ceil(low), math.floor(high)
        if int_low > int_high:
            raise BindingValueError(f"no integer lies within [{low}, {high}]")
        return min(max(value, int_low), int_high)
    return float(min(max(value, low), high))


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        text = raw.strip().lower()
        if text == _TRUE_TEXT:
            return True
        if text == _FALSE_TEXT:
            return False
    raise BindingValueError(f"expected true or false, got {_show(raw)}")


def _parse_choice(raw: Any, descriptor: InputDescriptor) -> str:
    if isinstance(raw, str):
        text = raw
    elif isinstance(raw, (int, float)) and not isinstance(raw, bool):
        text = str(raw)
    else:
        raise BindingValueError(f"expected one of {len(descriptor.choices)} choices, got {_show(raw)}")
    if text not in descriptor.choices:
        raise BindingValueError(f"{_show(text)} is not one of the {len(descriptor.choices)} allowed choices")
    return text


def _parse_image_reference(raw: Any) -> str:
    if not isinstance(raw, str):
        raise BindingValueError(f"expected an image reference, got {_show(raw)}")
    try:
        return normalize_reference(raw)
    except ImageReferenceError as exc:
        raise BindingValueError(str(exc)) from exc


def coerce_value(descriptor: InputDescriptor, raw: Any) -> Any:
    """
    Convert one raw value to what ComfyUI expects for `descriptor`.

    Raises:
        BindingValueError: when the value cannot be used.
    """
    kind = descriptor.kind
    if kind == InputKind.INT:
        return _clamp(_parse_int(raw), descriptor)
    if kind == InputKind.FLOAT:
        return _clamp(_parse_float(raw), descriptor)
    if kind == InputKind.BOOLEAN:
        return _parse_bool(raw)
    if kind == InputKind.ARRAY:
        return _parse_choice(raw, descriptor)
    if descriptor.image_upload:
        return _parse_image_reference(raw)
    return raw


def apply_bindings(
    graph: WorkflowGraph,
    request: BindingRequest,
    registry: InputRegistry,
    *,
    strict_unknown: bool | None = None,
) -> Result[WorkflowGraph]:
    """
    Apply `request` to `graph` and return a new graph.

    * values for node ids missing from the graph are ignored;
    * inputs wired to another node's output are never overwritten;
    * inputs the registry does not know are copied verbatim, or rejected when
      `strict_unknown` (default: `CMINI_STRICT_UNKNOWN_INPUTS`) is on.

    Returns:
        Result.Ok(graph) with `passthrough`, `skipped` and `previews` meta, or
        Result.Err(VALIDATION_FAILED) with every rejected field in `failures`.
    """
    strict = config.strict_unknown_inputs() if strict_unknown is None else bool(strict_unknown)
    updates: dict[str, dict[str, Any]] = {}
    failures: list[ValidationFailure] = []
    passthrough: list[str] = []
    skipped: list[str] = []
    previews: dict[str, str] = {}

    for raw_node_id, values in request.items():
        node_id = str(raw_node_id)
        node = graph.get(node_id)
        if node is None:
            logger.debug("Ignoring values for unknown node %s", node_id)
            continue
        if not isinstance(values, Mapping):
            failures.append(ValidationFailure(node_id, "", "values must be an object of input name -> value"))
            continue

        for raw_input_name, raw_value in values.items():
            input_name = str(raw_input_name)
            field_key = f"{node_id}.{input_name}"
            if node.is_linked(input_name):
                skipped.append(field_key)
                continue

            descriptor = registry.lookup(node.class_type, input_name)
            if descriptor is None:
                if strict:
                    failures.append(
                        ValidationFailure(node_id, input_name, f"unknown input for node type {node.class_type!r}")
                    )
                    continue
                passthrough.append(field_key)
                updates.setdefault(node_id, {})[input_name] = raw_value
                continue

            try:
                value = coerce_value(descriptor, raw_value)
            except BindingValueError as exc:
                failures.append(ValidationFailure(node_id, input_name, str(exc)))
                continue
            updates.setdefault(node_id, {})[input_name] = value
            if descriptor.image_upload:
                previews[field_key] = display_url_for_reference(value)

    if failures:
        log_structured(
            logger,
            logging.DEBUG,
            "Binding rejected",
            failures=[f.to_dict() for f in failures],
        )
        return Result.Err(
            ErrorCode.VALIDATION_FAILED,
            f"{len(failures)} input value(s) rejected",
            failures=[f.to_dict() for f in failures],
        )

    if passthrough:
        logger.debug("Copied %d value(s) without schema: %s", len(passthrough), ", ".join(passthrough))
    bound = graph.with_inputs(updates) if updates else graph
    return Result.Ok(bound, passthrough=passthrough, skipped=skipped, previews=previews)
