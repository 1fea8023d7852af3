"""Backend-facing alias for shared utilities.

Backend modules import from here instead of `cmini_shared` directly so the
shared package can move without touching every feature module.
"""

from __future__ import annotations

import cmini_shared as _root_shared

Result = _root_shared.Result
ErrorCode = _root_shared.ErrorCode
InputKind = _root_shared.InputKind
ImageType = _root_shared.ImageType
IMAGE_TYPES = _root_shared.IMAGE_TYPES
get_logger = _root_shared.get_logger
log_success = _root_shared.log_success
log_structured = _root_shared.log_structured
request_id_var = _root_shared.request_id_var
sanitize_error_message = _root_shared.sanitize_error_message
timer = _root_shared.timer

__all__ = list(_root_shared.__all__)
