"""
Shared types, enums, and constants.
"""
from enum import Enum
from typing import Final, Literal

# Where an image lives on the ComfyUI side
ImageType = Literal["input", "output", "temp"]

IMAGE_TYPES: Final[tuple[str, ...]] = ("input", "output", "temp")


# Error codes
class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_JSON = "INVALID_JSON"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    MALFORMED_WORKFLOW = "MALFORMED_WORKFLOW"

    # Upstream / service availability
    DEGRADED = "DEGRADED"
    SCHEMA_UNAVAILABLE = "SCHEMA_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"


class InputKind(str, Enum):
    """Normalized input classes a UI can render a control for."""

    ARRAY = "ARRAY"       # Fixed enumerated choice set (dropdown)
    STRING = "STRING"     # Free text, or an upload selector when image_upload is set
    INT = "INT"
    FLOAT = "FLOAT"
    BOOLEAN = "BOOLEAN"

    @property
    def is_numeric(self) -> bool:
        return self in (InputKind.INT, InputKind.FLOAT)
