# src/validation/validators.py — v1
"""Input validation run before a photo and description enter the pipeline.

Validators never raise: they return a ValidationResult with a stable code
and a localized message.
"""

from __future__ import annotations

import re

from pydantic import BaseModel

from ofrenda.utils.files import SIGNATURE_HEADER_SIZE, detect_image_type

MIN_DESCRIPTION_LENGTH = 10
MAX_DESCRIPTION_LENGTH = 500
MAX_FILE_SIZE_MB = 10

_SANITIZE_PATTERNS = [
    re.compile(r"[<>]"),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+=", re.IGNORECASE),
    re.compile(r"data:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
]


class ValidationResult(BaseModel):
    """Outcome of a validation check."""

    is_valid: bool
    error: str | None = None
    code: str | None = None

    @classmethod
    def ok(cls) -> ValidationResult:
        return cls(is_valid=True)

    @classmethod
    def fail(cls, code: str, error: str) -> ValidationResult:
        return cls(is_valid=False, code=code, error=error)


# === DESCRIPTION ===


def validate_food_description(
    description: str,
    min_length: int = MIN_DESCRIPTION_LENGTH,
    max_length: int = MAX_DESCRIPTION_LENGTH,
) -> ValidationResult:
    """Check the trimmed description length is within [min_length, max_length]."""
    if not isinstance(description, str):
        return ValidationResult.fail(
            "INVALID_DESCRIPTION", "La descripción debe ser texto"
        )

    trimmed = description.strip()
    if not trimmed:
        return ValidationResult.fail(
            "INVALID_DESCRIPTION_LENGTH", "La descripción no puede estar vacía"
        )
    if len(trimmed) < min_length:
        return ValidationResult.fail(
            "INVALID_DESCRIPTION_LENGTH",
            f"La descripción debe tener al menos {min_length} caracteres",
        )
    if len(trimmed) > max_length:
        return ValidationResult.fail(
            "INVALID_DESCRIPTION_LENGTH",
            f"La descripción no debe exceder {max_length} caracteres",
        )
    return ValidationResult.ok()


def sanitize_food_description(description: str) -> str:
    """Trim and strip markup/script fragments from a description."""
    if not isinstance(description, str):
        return ""
    cleaned = description.strip()
    for pattern in _SANITIZE_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    return cleaned


def remaining_characters(
    description: str, max_length: int = MAX_DESCRIPTION_LENGTH
) -> int:
    return max_length - len(description)


# === FILES ===


def validate_file_size(data: bytes, max_size_mb: int = MAX_FILE_SIZE_MB) -> ValidationResult:
    """Reject empty files and files above ``max_size_mb``."""
    if not data:
        return ValidationResult.fail("FILE_EMPTY", "El archivo está vacío")

    max_bytes = max_size_mb * 1024 * 1024
    if len(data) > max_bytes:
        size_mb = len(data) / (1024 * 1024)
        return ValidationResult.fail(
            "FILE_TOO_LARGE",
            f"La imagen es demasiado grande ({size_mb:.2f}MB). "
            f"Debe ser menor a {max_size_mb}MB",
        )
    return ValidationResult.ok()


def validate_file_type(data: bytes) -> ValidationResult:
    """Accept JPEG, PNG and WEBP by magic number.

    Files that are empty or shorter than the signature header are rejected
    before any signature inspection.
    """
    if not data:
        return ValidationResult.fail("FILE_EMPTY", "El archivo está vacío")
    if len(data) < SIGNATURE_HEADER_SIZE:
        return ValidationResult.fail(
            "FILE_TOO_SMALL",
            "El archivo es demasiado pequeño para ser una imagen válida",
        )

    if detect_image_type(data[:SIGNATURE_HEADER_SIZE]) is None:
        return ValidationResult.fail(
            "UNSUPPORTED_FILE_TYPE", "Por favor, sube una imagen JPEG, PNG o WEBP"
        )
    return ValidationResult.ok()


def validate_file(data: bytes, max_size_mb: int = MAX_FILE_SIZE_MB) -> ValidationResult:
    """Size check first (cheaper), then signature check."""
    size_result = validate_file_size(data, max_size_mb)
    if not size_result.is_valid:
        return size_result
    return validate_file_type(data)
