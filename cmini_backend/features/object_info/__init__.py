"""Object-info normalization: raw ComfyUI schema -> typed input descriptors."""
from .cache import ObjectInfoCache, get_object_info_cache, reset_object_info_cache
from .normalizer import InputDescriptor, normalize
from .registry import InputRegistry

__all__ = [
    "InputDescriptor",
    "InputRegistry",
    "ObjectInfoCache",
    "get_object_info_cache",
    "normalize",
    "reset_object_info_cache",
]
