# src/utils/files.py — v1
"""Small helpers for photo files: signatures, extensions, sizes, names."""

from __future__ import annotations

import base64
from datetime import datetime

# Magic numbers (leading bytes) of the supported image formats
JPEG_SIGNATURE = b"\xff\xd8\xff"
PNG_SIGNATURE = b"\x89\x50\x4e\x47"
RIFF_SIGNATURE = b"\x52\x49\x46\x46"
WEBP_MARKER = b"\x57\x45\x42\x50"  # at offset 8

SIGNATURE_HEADER_SIZE = 12

MEDIA_TYPES: dict[str, str] = {
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}


def detect_image_type(data: bytes) -> str | None:
    """Return "jpeg", "png" or "webp" from the file signature, else None."""
    if data.startswith(JPEG_SIGNATURE):
        return "jpeg"
    if data.startswith(PNG_SIGNATURE):
        return "png"
    if data.startswith(RIFF_SIGNATURE) and data[8:12] == WEBP_MARKER:
        return "webp"
    return None


def media_type_for(data: bytes) -> str:
    """MIME type for upload headers; falls back to octet-stream."""
    image_type = detect_image_type(data)
    return MEDIA_TYPES.get(image_type or "", "application/octet-stream")


def get_file_extension(filename: str) -> str:
    """Lower-cased extension without the dot, or "" when there is none."""
    parts = filename.split(".")
    return parts[-1].lower() if len(parts) > 1 else ""


def format_file_size(size_bytes: int) -> str:
    """Human-readable size, e.g. ``1.5 MB``."""
    if size_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    size = float(size_bytes)
    i = 0
    while size >= 1024 and i < len(units) - 1:
        size /= 1024
        i += 1
    return f"{round(size, 2):g} {units[i]}"


def format_filename_with_timestamp(
    prefix: str = "altar",
    extension: str = "png",
    now: datetime | None = None,
) -> str:
    """Download filename like ``altar_2024-10-31_143022.png``."""
    now = now or datetime.now()
    return f"{prefix}_{now:%Y-%m-%d_%H%M%S}.{extension}"


def to_data_url(data: bytes) -> str:
    """Inline ``data:`` URL for previews."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{media_type_for(data)};base64,{encoded}"
