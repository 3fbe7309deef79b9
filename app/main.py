from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import articles, files, health, images
from app.config import Settings, get_settings
from app.core.article_service import ArticleService
from app.core.exceptions import BlogError
from app.core.image_service import ImageService
from app.storage.json_store import JsonStore
from app.storage.markdown_store import MarkdownStore
from app.storage.paths import DataPaths

logger = logging.getLogger(__name__)


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    payload: dict[str, Any] = {
        "status": "error",
        "error": {
            "code": code,
            "message": message,
        },
    }
    if details is not None:
        payload["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=payload)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BlogError)
    async def blog_error_handler(_: Request, exc: BlogError):
        return _error_response(
            status_code=exc.status_code,
            code=exc.error_code,
            message=exc.message,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(_: Request, exc: RequestValidationError):
        return _error_response(
            status_code=422,
            code="VALIDATION_ERROR",
            message="Request validation failed.",
            details=jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(_: Request, __: Exception):
        logger.exception("Unhandled exception while processing request.")
        return _error_response(
            status_code=500,
            code="INTERNAL_ERROR",
            message="An unexpected error occurred.",
        )


def create_app(
    *,
    settings: Settings | None = None,
    paths: DataPaths | None = None,
    store: JsonStore | None = None,
    markdown_store: MarkdownStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    data_paths = paths or DataPaths.from_settings(settings)
    json_store = store or JsonStore()
    content_store = markdown_store or MarkdownStore(data_paths.markdown_dir())

    article_service = ArticleService(
        paths=data_paths,
        store=json_store,
        markdown_store=content_store,
    )
    image_service = ImageService(
        paths=data_paths,
        store=json_store,
        max_image_size=settings.max_image_size,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        data_paths.ensure_layout()
        logger.info("Serving markdown content from %s", content_store.root)
        yield

    app = FastAPI(title="Personal Blog", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.paths = data_paths
    app.state.markdown_store = content_store
    app.state.article_service = article_service
    app.state.image_service = image_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(articles.router, prefix="/api/articles", tags=["articles"])
    app.include_router(files.router, prefix="/api/files", tags=["files"])
    app.include_router(images.router, prefix="/api/images", tags=["images"])
    app.include_router(health.router, prefix="/api/health", tags=["health"])

    _register_exception_handlers(app)
    return app


app = create_app()
