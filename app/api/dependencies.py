from __future__ import annotations

from fastapi import Request

from app.core.article_service import ArticleService
from app.core.image_service import ImageService
from app.storage.markdown_store import MarkdownStore


def get_article_service(request: Request) -> ArticleService:
    """Resolve the shared article service instance from app state."""
    return request.app.state.article_service


def get_image_service(request: Request) -> ImageService:
    """Resolve the shared image service instance from app state."""
    return request.app.state.image_service


def get_markdown_store(request: Request) -> MarkdownStore:
    """Resolve the markdown store bound to the configured root."""
    return request.app.state.markdown_store
