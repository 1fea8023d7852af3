"""ComfyUI HTTP collaborators."""
from .object_info import fetch_object_info

__all__ = ["fetch_object_info"]
