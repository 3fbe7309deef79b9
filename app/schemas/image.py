from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

ImageMimeType = Literal["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"]

SUPPORTED_MIME_TYPES: frozenset[str] = frozenset(
    {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
)


def _normalize_filename(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError("Filename cannot be empty.")
    if "/" in normalized or "\\" in normalized:
        raise ValueError("Filename must not contain path separators.")
    return normalized


class ImageResponse(BaseModel):
    """Serialized image metadata for API responses."""

    id: int = Field(ge=1)
    filename: str = Field(min_length=1)
    original_name: str = Field(min_length=1, max_length=255)
    file_size: int = Field(ge=0)
    mime_type: ImageMimeType
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    description: str | None = Field(default=None, max_length=500)
    created_at: datetime
    base64_content: str | None = None

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, value: str) -> str:
        """Validate stored image filename."""
        return _normalize_filename(value)


class ImageRecord(BaseModel):
    """Persisted image metadata."""

    id: int = Field(ge=1)
    filename: str = Field(min_length=1)
    original_name: str = Field(min_length=1, max_length=255)
    file_path: str = Field(min_length=1)
    file_size: int = Field(ge=0)
    mime_type: ImageMimeType
    width: int = Field(ge=1)
    height: int = Field(ge=1)
    description: str | None = Field(default=None, max_length=500)
    created_at: datetime

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, value: str) -> str:
        """Validate stored image filename."""
        return _normalize_filename(value)

    def to_response(self, *, base64_content: str | None = None) -> ImageResponse:
        """Build the API representation, optionally embedding file content."""
        return ImageResponse.model_validate(
            {
                **self.model_dump(exclude={"file_path"}),
                "base64_content": base64_content,
            }
        )


class ImagesIndex(BaseModel):
    """Serialized `images.json` document."""

    version: str = Field(default="1.0")
    next_id: int = Field(default=1, ge=1)
    images: list[ImageRecord] = Field(default_factory=list)


class ImagePage(BaseModel):
    """One page of images."""

    content: list[ImageResponse] = Field(default_factory=list)
    page: int = Field(ge=0)
    size: int = Field(ge=1)
    total_elements: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    first: bool
    last: bool
