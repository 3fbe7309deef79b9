from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError

from app.api.dependencies import get_article_service
from app.api.requests import parse_request_model
from app.api.responses import ok_response
from app.core.article_service import ArticleService
from app.schemas.article import ArticleCreate, ArticleListQuery, ArticleUpdate, TagRequest

router = APIRouter()
ArticleServiceDep = Annotated[ArticleService, Depends(get_article_service)]


@router.get("")
async def list_articles(
    article_service: ArticleServiceDep,
    page: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int, Query(ge=1, le=100)] = 20,
    title: Annotated[str | None, Query()] = None,
    tags: Annotated[str | None, Query(description="Comma-separated tags")] = None,
    status: Annotated[str | None, Query()] = None,
    sort: Annotated[str, Query()] = "created_at",
    direction: Annotated[str, Query()] = "desc",
) -> dict[str, object]:
    """List articles with paging, sorting, and filtering."""
    try:
        query = ArticleListQuery.model_validate(
            {
                "page": page,
                "size": size,
                "title": title,
                "tags": tags,
                "status": status,
                "sort_by": sort,
                "sort_order": direction,
            }
        )
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors(include_context=False)) from exc

    listing = article_service.list_articles(query)
    return ok_response(listing.model_dump(mode="json"))


@router.post("")
async def create_article(
    request: Request,
    article_service: ArticleServiceDep,
) -> dict[str, object]:
    """Create a new article with its initial markdown body."""
    payload = await parse_request_model(request, ArticleCreate)
    article = article_service.create_article(payload)
    return ok_response(article.model_dump(mode="json"))


@router.get("/slug/{slug}")
async def get_article_by_slug(
    slug: str,
    article_service: ArticleServiceDep,
) -> dict[str, object]:
    """Return one article by slug."""
    article = article_service.get_article_by_slug(slug)
    return ok_response(article.model_dump(mode="json"))


@router.get("/{article_id}")
async def get_article(
    article_id: int,
    article_service: ArticleServiceDep,
) -> dict[str, object]:
    """Return one article by ID."""
    article = article_service.get_article(article_id)
    return ok_response(article.model_dump(mode="json"))


@router.put("/{article_id}")
async def update_article(
    request: Request,
    article_id: int,
    article_service: ArticleServiceDep,
) -> dict[str, object]:
    """Update article fields and, optionally, its markdown body."""
    payload = await parse_request_model(request, ArticleUpdate)
    article = article_service.update_article(article_id, payload)
    return ok_response(article.model_dump(mode="json"))


@router.patch("/{article_id}/publish")
async def publish_article(
    article_id: int,
    article_service: ArticleServiceDep,
) -> dict[str, object]:
    """Publish an article."""
    article = article_service.publish_article(article_id)
    return ok_response(article.model_dump(mode="json"))


@router.patch("/{article_id}/unpublish")
async def unpublish_article(
    article_id: int,
    article_service: ArticleServiceDep,
) -> dict[str, object]:
    """Move a published article back to draft."""
    article = article_service.unpublish_article(article_id)
    return ok_response(article.model_dump(mode="json"))


@router.patch("/{article_id}/archive")
async def archive_article(
    article_id: int,
    article_service: ArticleServiceDep,
) -> dict[str, object]:
    """Archive an article."""
    article = article_service.archive_article(article_id)
    return ok_response(article.model_dump(mode="json"))


@router.post("/{article_id}/tags")
async def add_tag(
    request: Request,
    article_id: int,
    article_service: ArticleServiceDep,
) -> dict[str, object]:
    """Attach a tag to an article."""
    payload = await parse_request_model(request, TagRequest)
    article = article_service.add_tag(article_id, payload.tag)
    return ok_response(article.model_dump(mode="json"))


@router.delete("/{article_id}/tags/{tag}")
async def remove_tag(
    article_id: int,
    tag: str,
    article_service: ArticleServiceDep,
) -> dict[str, object]:
    """Detach a tag from an article."""
    article = article_service.remove_tag(article_id, tag)
    return ok_response(article.model_dump(mode="json"))


@router.delete("/{article_id}")
async def delete_article(
    article_id: int,
    article_service: ArticleServiceDep,
    delete_content: Annotated[bool, Query()] = False,
) -> dict[str, object]:
    """Delete an article; its markdown file is kept unless asked otherwise."""
    article_service.delete_article(article_id, delete_content=delete_content)
    return ok_response(
        {"article_id": article_id, "deleted": True, "content_deleted": delete_content}
    )
