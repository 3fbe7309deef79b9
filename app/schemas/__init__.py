"""Pydantic schemas used by API and persistence layers."""

from app.schemas.article import (
    ArticleCreate,
    ArticleListQuery,
    ArticlePage,
    ArticleRecord,
    ArticleResponse,
    ArticlesIndex,
    ArticleUpdate,
    TagRequest,
)
from app.schemas.files import FileOperationResult, MarkdownFileInfo
from app.schemas.image import ImagePage, ImageRecord, ImageResponse, ImagesIndex

__all__ = [
    "ArticleCreate",
    "ArticleListQuery",
    "ArticlePage",
    "ArticleRecord",
    "ArticleResponse",
    "ArticleUpdate",
    "ArticlesIndex",
    "FileOperationResult",
    "ImagePage",
    "ImageRecord",
    "ImageResponse",
    "ImagesIndex",
    "MarkdownFileInfo",
    "TagRequest",
]
