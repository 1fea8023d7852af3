"""
Normalization of ComfyUI `/object_info` input schema entries.

ComfyUI describes each node input with whatever shape the node author chose:

    ["512", "768", "1024"]                        bare choice list
    [["euler", "heun"], {"tooltip": "..."}]       nested choice list (+ options)
    ["INT", {"default": 20, "min": 1, "max": 100}]  type tag + options
    ["COMBO", {"options": ["a", "b"]}]            new-style combo
    ["MODEL"]                                     connection-only type

`normalize()` parses that shape once into an `InputDescriptor`, the only form
the rest of the backend (registry, binding, UI payload) ever sees.
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NamedTuple

from ...shared import InputKind, get_logger

logger = get_logger(__name__)

_TYPE_TAG_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")
# Wildcard and union connection types: "*", "IMAGE,MASK".
_CONNECTION_TAG_RE = re.compile(r"^(\*|[A-Z][A-Z0-9_]*(,[A-Z][A-Z0-9_]*)+)$")

_TAG_KINDS: dict[str, InputKind] = {
    "INT": InputKind.INT,
    "FLOAT": InputKind.FLOAT,
    "STRING": InputKind.STRING,
    "BOOLEAN": InputKind.BOOLEAN,
}
_COMBO_TAG = "COMBO"

_UPLOAD_FLAGS = ("image_upload", "video_upload")
_UPLOAD_TARGETS = frozenset({"image", "video"})
_HIDDEN_FLAGS = ("forceInput", "hidden")
_HIDDEN_NAME_PREFIX = "_"

Number = int | float


class SchemaMalformed(ValueError):
    """Raised internally when a raw schema entry cannot be parsed."""


@dataclass(frozen=True)
class InputDescriptor:
    """Uniform description of one node input."""

    node_type: str
    name: str
    kind: InputKind
    user_accessible: bool
    choices: tuple[str, ...] = ()
    default: Any = None
    min: Number | None = None
    max: Number | None = None
    step: Number | None = None
    multiline: bool | None = None
    dynamic_prompts: bool | None = None
    image_upload: bool = False
    tooltip: str | None = None
    required: bool = True

    @property
    def has_bounds(self) -> bool:
        return self.min is not None and self.max is not None

    def to_dict(self) -> dict[str, Any]:
        """JSON shape consumed by the UI (`/comfyui/inputsinfo`)."""
        out: dict[str, Any] = {
            "type": self.kind.value,
            "userAccessible": self.user_accessible,
            "list": list(self.choices),
            "required": self.required,
        }
        optional = (
            ("default", self.default),
            ("min", self.min),
            ("max", self.max),
            ("step", self.step),
            ("multiline", self.multiline),
            ("dynamicPrompts", self.dynamic_prompts),
            ("tooltip", self.tooltip),
        )
        for key, value in optional:
            if value is not None:
                out[key] = value
        if self.image_upload:
            out["imageUpload"] = True
        return out


class _ParsedSchema(NamedTuple):
    kind: InputKind
    choices: tuple[str, ...]
    options: Mapping[str, Any]
    supported: bool


_NO_OPTIONS: Mapping[str, Any] = {}


def _choice_list(values: Any) -> tuple[str, ...]:
    if not isinstance(values, (list, tuple)):
        raise SchemaMalformed(f"choice list must be a list, got {type(values).__name__}")
    if not values:
        raise SchemaMalformed("choice list is empty")
    for item in values:
        if not isinstance(item, str):
            raise SchemaMalformed(f"choice list holds a non-string element: {item!r}")
    return tuple(values)


def _options_at(raw: list | tuple, index: int) -> Mapping[str, Any]:
    if len(raw) <= index:
        return _NO_OPTIONS
    options = raw[index]
    if not isinstance(options, Mapping):
        raise SchemaMalformed(f"options must be an object, got {type(options).__name__}")
    return options


def _is_tagged(raw: list | tuple) -> bool:
    head = raw[0]
    if not isinstance(head, str):
        return False
    if not (_TYPE_TAG_RE.match(head) or _CONNECTION_TAG_RE.match(head)):
        return False
    if len(raw) == 1:
        return True
    return len(raw) == 2 and isinstance(raw[1], Mapping)


def _parse_raw_schema(raw: Any) -> _ParsedSchema:
    if not isinstance(raw, (list, tuple)):
        raise SchemaMalformed(f"expected a list, got {type(raw).__name__}")
    if not raw:
        raise SchemaMalformed("empty schema")

    head = raw[0]
    if isinstance(head, (list, tuple)):
        if len(raw) > 2:
            raise SchemaMalformed(f"nested choice list has {len(raw)} elements")
        return _ParsedSchema(InputKind.ARRAY, _choice_list(head), _options_at(raw, 1), True)

    if not _is_tagged(raw):
        return _ParsedSchema(InputKind.ARRAY, _choice_list(raw), _NO_OPTIONS, True)

    options = _options_at(raw, 1)
    if head == _COMBO_TAG:
        return _ParsedSchema(InputKind.ARRAY, _choice_list(options.get("options")), options, True)
    kind = _TAG_KINDS.get(head)
    if kind is None:
        # Connection types (MODEL, LATENT, ...) and custom tags have no literal form.
        return _ParsedSchema(InputKind.STRING, (), options, False)
    return _ParsedSchema(kind, (), options, True)


def _number(value: Any) -> Number | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _flag(options: Mapping[str, Any], key: str) -> bool | None:
    if key not in options:
        return None
    return bool(options.get(key))


def _scalar_default(options: Mapping[str, Any]) -> Any:
    value = options.get("default")
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    return None


def _has_upload_flag(options: Mapping[str, Any]) -> bool:
    if any(bool(options.get(flag)) for flag in _UPLOAD_FLAGS):
        return True
    return str(options.get("upload") or "").strip().lower() in _UPLOAD_TARGETS


def _is_hidden(input_name: str, options: Mapping[str, Any], hidden_group: bool) -> bool:
    if hidden_group or input_name.startswith(_HIDDEN_NAME_PREFIX):
        return True
    return any(bool(options.get(flag)) for flag in _HIDDEN_FLAGS)


def normalize(
    node_type: str,
    input_name: str,
    raw_schema: Any,
    required: bool = True,
    *,
    hidden: bool = False,
) -> InputDescriptor:
    """
    Normalize one raw `/object_info` input entry.

    Never raises: a malformed entry yields an inaccessible STRING descriptor and
    a warning, so one broken node pack cannot block the rest of the registry.

    Args:
        node_type: ComfyUI class type owning the input.
        input_name: Input name inside the node.
        raw_schema: The untouched schema entry.
        required: Whether the entry came from the `required` group.
        hidden: Whether the entry came from the `hidden` group.
    """
    try:
        parsed = _parse_raw_schema(raw_schema)
    except SchemaMalformed as exc:
        logger.warning("Malformed object_info schema for %s.%s: %s", node_type, input_name, exc)
        return InputDescriptor(
            node_type=node_type,
            name=input_name,
            kind=InputKind.STRING,
            user_accessible=False,
            required=required,
        )

    kind = parsed.kind
    options = parsed.options
    image_upload = _has_upload_flag(options)
    if image_upload and kind == InputKind.ARRAY:
        # Upload selectors accept freshly uploaded files that are not in the list yet.
        kind = InputKind.STRING
    elif image_upload and kind != InputKind.STRING:
        image_upload = False

    numeric = kind.is_numeric
    tooltip = options.get("tooltip")
    return InputDescriptor(
        node_type=node_type,
        name=input_name,
        kind=kind,
        user_accessible=parsed.supported and not _is_hidden(input_name, options, hidden),
        choices=parsed.choices,
        default=_scalar_default(options),
        min=_number(options.get("min")) if numeric else None,
        max=_number(options.get("max")) if numeric else None,
        step=_number(options.get("step")) if numeric else None,
        multiline=_flag(options, "multiline"),
        dynamic_prompts=_flag(options, "dynamicPrompts"),
        image_upload=image_upload,
        tooltip=tooltip if isinstance(tooltip, str) and tooltip else None,
        required=required,
    )
