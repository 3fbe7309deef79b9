from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

ENV_DATA_ROOT: Final[str] = "BLOG_DATA_ROOT"
ENV_MARKDOWN_ROOT: Final[str] = "BLOG_MARKDOWN_ROOT"
ENV_IMAGES_ROOT: Final[str] = "BLOG_IMAGES_ROOT"
ENV_MAX_IMAGE_SIZE: Final[str] = "BLOG_MAX_IMAGE_SIZE"
ENV_CORS_ORIGINS: Final[str] = "BLOG_CORS_ORIGINS"

DEFAULT_MAX_IMAGE_SIZE: Final[int] = 5 * 1024 * 1024
DEFAULT_DATA_DIRNAME: Final[str] = "data"
DEFAULT_MARKDOWN_DIRNAME: Final[str] = "markdown"
DEFAULT_IMAGES_DIRNAME: Final[str] = "images"
DEFAULT_CORS_ORIGINS: Final[tuple[str, ...]] = ("*",)


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration for the application."""

    data_root: Path
    markdown_root: Path
    images_root: Path
    max_image_size: int
    cors_origins: tuple[str, ...] = DEFAULT_CORS_ORIGINS


def _parse_positive_int(raw_value: str | None, *, fallback: int) -> int:
    """Parse a positive integer environment value with fallback."""
    if not raw_value:
        return fallback

    try:
        parsed = int(raw_value)
    except ValueError:
        return fallback
    return parsed if parsed > 0 else fallback


def _parse_origins(raw_value: str | None) -> tuple[str, ...]:
    if not raw_value:
        return DEFAULT_CORS_ORIGINS
    origins = tuple(origin.strip() for origin in raw_value.split(",") if origin.strip())
    return origins or DEFAULT_CORS_ORIGINS


def _resolve_dir(raw_value: str | None, *, fallback: Path) -> Path:
    if raw_value and raw_value.strip():
        return Path(raw_value.strip()).expanduser().resolve()
    return fallback.resolve()


def get_settings() -> Settings:
    """Build settings from environment variables and local defaults."""
    project_root = Path(__file__).resolve().parent.parent
    data_root = _resolve_dir(
        os.getenv(ENV_DATA_ROOT), fallback=project_root / DEFAULT_DATA_DIRNAME
    )
    markdown_root = _resolve_dir(
        os.getenv(ENV_MARKDOWN_ROOT), fallback=data_root / DEFAULT_MARKDOWN_DIRNAME
    )
    images_root = _resolve_dir(
        os.getenv(ENV_IMAGES_ROOT), fallback=data_root / DEFAULT_IMAGES_DIRNAME
    )
    max_image_size = _parse_positive_int(
        os.getenv(ENV_MAX_IMAGE_SIZE), fallback=DEFAULT_MAX_IMAGE_SIZE
    )

    return Settings(
        data_root=data_root,
        markdown_root=markdown_root,
        images_root=images_root,
        max_image_size=max_image_size,
        cors_origins=_parse_origins(os.getenv(ENV_CORS_ORIGINS)),
    )
