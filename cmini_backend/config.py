"""
Configuration for the ComfyUI Mini backend.

Values are read from the environment once at import. Settings that tests or
operators may flip at runtime are exposed as functions that re-read the env.
"""
import logging
import os

from .utils import env_bool

logger = logging.getLogger(__name__)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid float for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_bool(default: bool, *names: str) -> bool:
    for name in names:
        if name and name in os.environ:
            return env_bool(name, default)
    return default


def _resolve_comfy_url() -> str:
    raw = _env_raw("CMINI_COMFYUI_URL", "COMFYUI_URL", default="http://127.0.0.1:8188") or ""
    url = raw.rstrip("/")
    if not url.startswith(("http://", "https://")):
        logger.warning("CMINI_COMFYUI_URL=%r has no scheme, assuming http://", raw)
        url = f"http://{url}"
    return url


# --- ComfyUI connection ---
COMFY_URL = _resolve_comfy_url()
OBJECT_INFO_TIMEOUT = _env_float(30.0, "CMINI_OBJECT_INFO_TIMEOUT", min_value=1.0, max_value=600.0)

# --- Workflow limits ---
MAX_WORKFLOW_NODES = _env_int(5000, "CMINI_MAX_WORKFLOW_NODES", min_value=1, max_value=1_000_000)

# --- Metadata generation ---
HIDE_ALL_INPUTS_ON_AUTO_CONVERT = _env_bool(False, "CMINI_HIDE_ALL_INPUTS_ON_AUTO_CONVERT")

# --- Image display route (served by the UI layer, proxied to ComfyUI /view) ---
IMAGE_ROUTE = _env_raw("CMINI_IMAGE_ROUTE", default="/comfyui/image") or "/comfyui/image"

# --- HTTP request limits ---
DEFAULT_MAX_JSON_BYTES = 10 * 1024 * 1024  # 10MB
MAX_JSON_BYTES = _env_int(DEFAULT_MAX_JSON_BYTES, "CMINI_MAX_JSON_SIZE", min_value=1024)


def strict_unknown_inputs() -> bool:
    """
    Binding policy for inputs the cached object_info does not know.

    Off (default): the value is copied through without coercion so workflows
    using node packs newer than the cached schema still run.
    On: such inputs are reported as validation failures.
    """
    return _env_bool(False, "CMINI_STRICT_UNKNOWN_INPUTS")
