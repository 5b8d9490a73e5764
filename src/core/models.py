# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types; all imports come from core.models.
Field names are snake_case in Python; the camelCase aliases are the wire
and storage shape shared with the remote API and the persisted collection.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _new_altar_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _WireModel(BaseModel):
    """Base for models exchanged with the API or the store (camelCase aliases)."""

    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump using aliases, JSON-compatible values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# === PERSISTED RECORD ===


class AltarRecord(_WireModel):
    """A fully assembled altar: source photo + generated image.

    Immutable once built. Only constructed after both remote steps succeed,
    so a persisted record is never partially populated.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=_new_altar_id, min_length=1)
    photo_url: str = Field(alias="photoUrl")
    photo_s3_key: str = Field(alias="photoS3Key")
    food_description: str = Field(alias="foodDescription")
    altar_image_url: str = Field(alias="altarImageUrl")
    altar_image_s3_key: str = Field(alias="altarImageS3Key")
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")

    @classmethod
    def assemble(
        cls,
        upload: UploadPhotoResponse,
        generation: GenerateAltarResponse,
        food_description: str,
    ) -> AltarRecord:
        """Build a new record from both remote results, stamping id and createdAt."""
        return cls(
            photo_url=upload.photo_url,
            photo_s3_key=upload.s3_key,
            food_description=food_description,
            altar_image_url=generation.altar_image_url,
            altar_image_s3_key=generation.altar_image_s3_key,
        )


# === REMOTE PAYLOADS ===


class UploadPhotoResponse(_WireModel):
    """Body returned by the upload endpoint."""

    photo_url: str = Field(alias="photoUrl", min_length=1)
    s3_key: str = Field(alias="s3Key", min_length=1)


class GenerateAltarRequest(_WireModel):
    """Body sent to the generation endpoint."""

    photo_s3_key: str = Field(alias="photoS3Key")
    food_description: str = Field(alias="foodDescription")


class GenerateAltarResponse(_WireModel):
    """Body returned by the generation endpoint."""

    altar_image_url: str = Field(alias="altarImageUrl", min_length=1)
    altar_image_s3_key: str = Field(alias="altarImageS3Key", min_length=1)


class ErrorResponse(BaseModel):
    """Structured error body returned by the API on failure."""

    error: str | None = None
    message: str | None = None
    code: str | None = None


# === PIPELINE INPUT ===


class CreateAltarRequest(BaseModel):
    """Input of the creation pipeline: raw photo bytes + food description."""

    photo: bytes
    filename: str = "photo"
    food_description: str
