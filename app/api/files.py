from __future__ import annotations

import json
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from app.api.dependencies import get_article_service, get_markdown_store
from app.api.responses import ok_response
from app.core.article_service import ArticleService
from app.core.exceptions import ValidationError
from app.schemas.files import MarkdownFileInfo
from app.storage.markdown_store import MarkdownStore

logger = logging.getLogger(__name__)

router = APIRouter()
ArticleServiceDep = Annotated[ArticleService, Depends(get_article_service)]
MarkdownStoreDep = Annotated[MarkdownStore, Depends(get_markdown_store)]
_CONTENT_KEYS = ("content", "body")


def _field_as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def parse_markdown_body(raw_body: bytes) -> str:
    """Extract markdown from a request body.

    JSON objects contribute their `content` (or else `body`) field; anything
    else, including JSON without those keys, is taken verbatim as markdown.
    """
    try:
        text = raw_body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValidationError("Markdown content must be UTF-8 encoded.") from exc
    if not text.strip():
        return ""

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        logger.debug("Request body is not JSON, storing as plain markdown")
        return text

    if isinstance(parsed, dict):
        for key in _CONTENT_KEYS:
            if key in parsed:
                return _field_as_text(parsed[key])
    return text


@router.get("/markdown")
async def list_markdown_files(markdown_store: MarkdownStoreDep) -> dict[str, object]:
    """List every markdown file under the content root with its size."""
    files = [
        MarkdownFileInfo(
            file_path=file_path,
            size_bytes=markdown_store.get_file_size(file_path),
        ).model_dump(mode="json")
        for file_path in markdown_store.list_markdown_files()
    ]
    return ok_response({"files": files})


@router.get("/markdown/{article_id}", response_class=PlainTextResponse)
async def get_markdown(
    article_id: int,
    article_service: ArticleServiceDep,
) -> PlainTextResponse:
    """Return an article's raw markdown body."""
    content = article_service.read_content(article_id)
    return PlainTextResponse(content, media_type="text/markdown; charset=utf-8")


@router.put("/markdown/{article_id}")
async def put_markdown(
    request: Request,
    article_id: int,
    article_service: ArticleServiceDep,
) -> dict[str, object]:
    """Save an article's markdown body from a JSON or plain-text request."""
    content = parse_markdown_body(await request.body())
    result = article_service.write_content(article_id, content)
    return ok_response(result.model_dump(mode="json"))
