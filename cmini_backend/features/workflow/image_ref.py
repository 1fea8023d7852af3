"""
Image reference helpers for upload-style inputs (LoadImage, LoadVideo, ...).

ComfyUI stores the selected file as one string, `"<subfolder>/<filename>"`,
optionally annotated with the folder type (`"clip.png [output]"`). The UI needs
the parts separately to build preview URLs.

Only the first `/` separates subfolder from filename, so composing is the exact
inverse of splitting when the subfolder itself contains no `/`, and when an
empty subfolder is paired with a filename that contains no `/`. Other
combinations would read back differently and are rejected by
`compose_reference()`.
"""
from __future__ import annotations

import re
from typing import NamedTuple
from urllib.parse import parse_qs, quote, urlencode, urlsplit

from ... import config
from ...shared import IMAGE_TYPES, ImageType

SEPARATOR = "/"
DEFAULT_IMAGE_TYPE: ImageType = "input"
_TYPE_ANNOTATION_RE = re.compile(r" \[(input|output|temp)\]$")


class ImageReferenceError(ValueError):
    """Reference cannot be represented (or was rejected) unambiguously."""


class ImageRef(NamedTuple):
    filename: str
    subfolder: str = ""
    type: str = DEFAULT_IMAGE_TYPE


def _strip_annotation(reference: str) -> tuple[str, str | None]:
    match = _TYPE_ANNOTATION_RE.search(reference)
    if match is None:
        return reference, None
    return reference[: match.start()], match.group(1)


def split_reference(reference: str, default_type: str = DEFAULT_IMAGE_TYPE) -> ImageRef:
    """
    `"refs/portrait.png"` -> `ImageRef("portrait.png", "refs", "input")`.

    The first segment is the subfolder, the rest (separators kept) the filename.
    """
    if not reference:
        return ImageRef("", "", default_type)
    body, annotated_type = _strip_annotation(reference)
    image_type = annotated_type or default_type
    if SEPARATOR not in body:
        return ImageRef(body, "", image_type)
    subfolder, filename = body.split(SEPARATOR, 1)
    return ImageRef(filename, subfolder, image_type)


def compose_reference(
    filename: str,
    subfolder: str = "",
    image_type: str | None = None,
    *,
    annotate: bool = False,
) -> str:
    """Inverse of `split_reference()`; raises for combinations that would not round-trip."""
    subfolder = subfolder or ""
    if not filename:
        if subfolder:
            raise ImageReferenceError("subfolder given without a filename")
        return ""
    if SEPARATOR in subfolder:
        raise ImageReferenceError(f"nested subfolder {subfolder!r} cannot be represented")
    if not subfolder and SEPARATOR in filename:
        raise ImageReferenceError(f"filename {filename!r} would be read back as a subfolder")

    reference = f"{subfolder}{SEPARATOR}{filename}" if subfolder else filename
    if annotate and image_type:
        if image_type not in IMAGE_TYPES:
            raise ImageReferenceError(f"unknown image type {image_type!r}")
        reference = f"{reference} [{image_type}]"
    return reference


def normalize_reference(reference: str) -> str:
    """
    Validate a user-supplied reference and return its canonical combined form.

    Rejects empty references, empty path segments and `..` segments.
    """
    body, annotated_type = _strip_annotation(str(reference or "").strip())
    if not body:
        raise ImageReferenceError("image reference is empty")
    segments = body.split(SEPARATOR)
    if any(segment == "" for segment in segments):
        raise ImageReferenceError(f"image reference {body!r} has an empty path segment")
    if any(segment in (".", "..") for segment in segments):
        raise ImageReferenceError(f"image reference {body!r} points outside its folder")

    parts = split_reference(body)
    return compose_reference(
        parts.filename,
        parts.subfolder,
        annotated_type,
        annotate=annotated_type is not None,
    )


def to_display_url(
    filename: str,
    subfolder: str = "",
    image_type: str = DEFAULT_IMAGE_TYPE,
    *,
    route: str | None = None,
) -> str:
    """
    Preview locator, e.g. `/comfyui/image?filename=a.png&subfolder=refs&type=input`.

    Pure formatting: no I/O, blank subfolder kept so the parameter set is fixed.
    """
    if image_type not in IMAGE_TYPES:
        raise ImageReferenceError(f"unknown image type {image_type!r}")
    query = urlencode(
        [("filename", filename), ("subfolder", subfolder or ""), ("type", image_type)],
        quote_via=quote,
    )
    return f"{route or config.IMAGE_ROUTE}?{query}"


def parse_display_url(url: str) -> ImageRef:
    """Inverse of `to_display_url()`."""
    params = parse_qs(urlsplit(url).query, keep_blank_values=True)

    def _first(name: str, default: str) -> str:
        values = params.get(name)
        return values[0] if values else default

    return ImageRef(
        filename=_first("filename", ""),
        subfolder=_first("subfolder", ""),
        type=_first("type", DEFAULT_IMAGE_TYPE),
    )


def display_url_for_reference(reference: str, default_type: str = DEFAULT_IMAGE_TYPE) -> str:
    parts = split_reference(reference, default_type)
    return to_display_url(parts.filename, parts.subfolder, parts.type)
