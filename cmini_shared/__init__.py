"""Shared utilities for the ComfyUI Mini backend."""
from .errors import sanitize_error_message
from .log import get_logger, log_structured, log_success, request_id_var
from .result import Result
from .time import timer
from .types import IMAGE_TYPES, ErrorCode, ImageType, InputKind

__all__ = [
    "Result",
    "get_logger",
    "log_success",
    "timer",
    "ErrorCode",
    "InputKind",
    "ImageType",
    "IMAGE_TYPES",
    "log_structured",
    "request_id_var",
    "sanitize_error_message",
]
