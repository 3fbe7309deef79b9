from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

ArticleStatus = Literal["DRAFT", "PUBLISHED", "ARCHIVED"]
ArticleSortBy = Literal["created_at", "updated_at", "published_at", "title"]
SortOrder = Literal["asc", "desc"]

_SLUG_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_SORT_ALIASES = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "publishedAt": "published_at",
}


def _normalize_title(value: str) -> str:
    compact = " ".join(value.strip().split())
    if not compact:
        raise ValueError("Article title cannot be empty.")
    return compact


def _normalize_status(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().upper()
    return value


def normalize_tag(value: str) -> str:
    """Trim a tag and reject blank values."""
    normalized = value.strip()
    if not normalized:
        raise ValueError("Tag cannot be empty.")
    if len(normalized) > 50:
        raise ValueError("Tag must be 50 characters or fewer.")
    return normalized


def _normalize_tags(value: list[str] | None) -> list[str] | None:
    if value is None:
        return None
    seen: set[str] = set()
    cleaned: list[str] = []
    for tag in value:
        normalized = normalize_tag(tag)
        if normalized in seen:
            continue
        seen.add(normalized)
        cleaned.append(normalized)
    return cleaned


class ArticleCreate(BaseModel):
    """Input schema for article creation."""

    title: str = Field(min_length=1, max_length=255)
    summary: str | None = None
    status: ArticleStatus = "DRAFT"
    tags: list[str] = Field(default_factory=list)
    content: str | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        """Collapse whitespace in the title."""
        return _normalize_title(value)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, value: Any) -> Any:
        """Accept status values in any case."""
        return _normalize_status(value)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: list[str]) -> list[str]:
        """Trim and de-duplicate tags."""
        return _normalize_tags(value) or []


class ArticleUpdate(BaseModel):
    """Input schema for partial article updates.

    Fields left as None are not changed. `content` replaces the markdown body.
    """

    title: str | None = Field(default=None, max_length=255)
    summary: str | None = None
    status: ArticleStatus | None = None
    tags: list[str] | None = None
    content: str | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str | None) -> str | None:
        """Ignore blank titles and collapse whitespace."""
        if value is None or not value.strip():
            return None
        return _normalize_title(value)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, value: Any) -> Any:
        """Accept status values in any case."""
        return _normalize_status(value)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: list[str] | None) -> list[str] | None:
        """Trim and de-duplicate tags."""
        return _normalize_tags(value)


class TagRequest(BaseModel):
    """Input schema for adding a tag to an article."""

    tag: str = Field(min_length=1, max_length=50)

    @field_validator("tag")
    @classmethod
    def validate_tag(cls, value: str) -> str:
        """Trim the tag."""
        return normalize_tag(value)


class ArticleResponse(BaseModel):
    """Serialized article for API responses."""

    id: int = Field(ge=1)
    title: str = Field(min_length=1, max_length=255)
    slug: str = Field(pattern=_SLUG_PATTERN.pattern, max_length=255)
    summary: str | None = None
    status: ArticleStatus = "DRAFT"
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    published_at: datetime | None = None


class ArticleRecord(ArticleResponse):
    """Persisted article, including the pointer to its markdown content."""

    content_path: str = Field(min_length=1, max_length=500)

    def to_response(self) -> ArticleResponse:
        """Drop storage-only fields."""
        return ArticleResponse.model_validate(self.model_dump(exclude={"content_path"}))


class ArticlesIndex(BaseModel):
    """Serialized `articles.json` document."""

    version: str = Field(default="1.0")
    next_id: int = Field(default=1, ge=1)
    articles: list[ArticleRecord] = Field(default_factory=list)


class ArticleListQuery(BaseModel):
    """Filters, sorting, and paging for article listings."""

    page: int = Field(default=0, ge=0)
    size: int = Field(default=20, ge=1, le=100)
    title: str | None = None
    tags: list[str] = Field(default_factory=list)
    status: ArticleStatus | None = None
    sort_by: ArticleSortBy = "created_at"
    sort_order: SortOrder = "desc"

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str | None) -> str | None:
        """Treat blank search text as no filter."""
        if value is None:
            return None
        return value.strip() or None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        return [tag.strip() for tag in value if isinstance(tag, str) and tag.strip()]

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, value: Any) -> Any:
        """Accept status values in any case."""
        if isinstance(value, str) and not value.strip():
            return None
        return _normalize_status(value)

    @field_validator("sort_by", mode="before")
    @classmethod
    def validate_sort_by(cls, value: Any) -> Any:
        """Accept camelCase sort field names."""
        if isinstance(value, str):
            return _SORT_ALIASES.get(value, value)
        return value

    @field_validator("sort_order", mode="before")
    @classmethod
    def validate_sort_order(cls, value: Any) -> Any:
        """Accept sort direction in any case."""
        if isinstance(value, str):
            return value.strip().lower()
        return value


class ArticlePage(BaseModel):
    """One page of articles."""

    content: list[ArticleResponse] = Field(default_factory=list)
    page: int = Field(ge=0)
    size: int = Field(ge=1)
    total_elements: int = Field(ge=0)
    total_pages: int = Field(ge=0)
    first: bool
    last: bool
