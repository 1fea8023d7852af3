"""
Input registry: every normalized input descriptor, keyed by (node type, input name).
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from ...shared import get_logger, log_success, timer
from .normalizer import InputDescriptor, normalize

logger = get_logger(__name__)

# Group name -> (required, hidden)
_INPUT_GROUPS: tuple[tuple[str, bool, bool], ...] = (
    ("required", True, False),
    ("optional", False, False),
    ("hidden", False, True),
)


def _node_input_groups(node_type: str, node_info: Any) -> Mapping[str, Any] | None:
    if not isinstance(node_info, Mapping):
        logger.warning("Skipping object_info entry %r: expected an object, got %s", node_type, type(node_info).__name__)
        return None
    groups = node_info.get("input")
    if groups is None:
        return {}
    if not isinstance(groups, Mapping):
        logger.warning("Skipping object_info entry %r: 'input' is not an object", node_type)
        return None
    return groups


class InputRegistry:
    """
    Immutable lookup of normalized inputs.

    Built once from a full `/object_info` dump; safe to share between
    concurrent binding requests since nothing mutates it after `build()`.
    """

    __slots__ = ("_by_node",)

    def __init__(self, by_node: Mapping[str, Mapping[str, InputDescriptor]]):
        self._by_node: Mapping[str, Mapping[str, InputDescriptor]] = MappingProxyType(
            {node_type: MappingProxyType(dict(inputs)) for node_type, inputs in by_node.items()}
        )

    @classmethod
    def build(cls, all_raw_schemas: Mapping[str, Any]) -> "InputRegistry":
        """Normalize every input of every node type in an `/object_info` payload."""
        by_node: dict[str, dict[str, InputDescriptor]] = {}
        skipped = 0
        with timer("object_info normalization", logger):
            for node_type, node_info in all_raw_schemas.items():
                if not isinstance(node_type, str) or not node_type:
                    skipped += 1
                    continue
                groups = _node_input_groups(node_type, node_info)
                if groups is None:
                    skipped += 1
                    continue
                by_node[node_type] = cls._normalize_groups(node_type, groups)

        total = sum(len(inputs) for inputs in by_node.values())
        log_success(logger, f"Input registry built: {len(by_node)} node types, {total} inputs")
        if skipped:
            logger.warning("Skipped %d malformed object_info node entries", skipped)
        return cls(by_node)

    @staticmethod
    def _normalize_groups(node_type: str, groups: Mapping[str, Any]) -> dict[str, InputDescriptor]:
        # Required inputs are inserted first so iteration order is presentation order.
        inputs: dict[str, InputDescriptor] = {}
        for group_name, required, hidden in _INPUT_GROUPS:
            group = groups.get(group_name)
            if group is None:
                continue
            if not isinstance(group, Mapping):
                logger.warning("object_info %s.%s is not an object, ignored", node_type, group_name)
                continue
            for input_name, raw_schema in group.items():
                if not isinstance(input_name, str) or input_name in inputs:
                    continue
                inputs[input_name] = normalize(node_type, input_name, raw_schema, required, hidden=hidden)
        return inputs

    def lookup(self, node_type: str, input_name: str) -> InputDescriptor | None:
        """Return the descriptor, or None when the pair is unknown."""
        inputs = self._by_node.get(node_type)
        if inputs is None:
            return None
        return inputs.get(input_name)

    def inputs_for(self, node_type: str) -> list[InputDescriptor]:
        """Descriptors of one node type, required inputs first."""
        inputs = self._by_node.get(node_type)
        if not inputs:
            return []
        return sorted(inputs.values(), key=lambda d: not d.required)

    def node_types(self) -> list[str]:
        return list(self._by_node.keys())

    def to_dict(self) -> dict[str, dict[str, dict[str, Any]]]:
        return {
            node_type: {name: descriptor.to_dict() for name, descriptor in inputs.items()}
            for node_type, inputs in self._by_node.items()
        }

    def __contains__(self, key: object) -> bool:
        if isinstance(key, tuple) and len(key) == 2:
            return self.lookup(key[0], key[1]) is not None
        return key in self._by_node

    def __iter__(self) -> Iterator[InputDescriptor]:
        for inputs in self._by_node.values():
            yield from inputs.values()

    def __len__(self) -> int:
        return sum(len(inputs) for inputs in self._by_node.values())
