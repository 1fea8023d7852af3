"""
ComfyUI Mini backend.

Normalizes ComfyUI's `/object_info` input schema and binds user-supplied values
into API-format workflow graphs before they are queued.
"""
