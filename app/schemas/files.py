from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class FileOperationResult(BaseModel):
    """Outcome of writing an article's markdown content."""

    success: bool
    file_path: str
    message: str
    timestamp: datetime


class MarkdownFileInfo(BaseModel):
    """A markdown file known to the store."""

    file_path: str = Field(min_length=1)
    size_bytes: int = Field(ge=0)
