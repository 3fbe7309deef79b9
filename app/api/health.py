from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.dependencies import get_markdown_store
from app.api.responses import ok_response
from app.storage.markdown_store import MarkdownStore

router = APIRouter()


@router.get("")
async def health(
    markdown_store: Annotated[MarkdownStore, Depends(get_markdown_store)],
) -> dict[str, object]:
    """Liveness probe."""
    return ok_response(
        {"healthy": True, "markdown_files": len(markdown_store.list_markdown_files())}
    )
