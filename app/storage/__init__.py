"""Filesystem persistence helpers for the blog backend."""

from app.storage.json_store import JsonStore
from app.storage.markdown_store import MarkdownStore
from app.storage.paths import DataPaths

__all__ = ["DataPaths", "JsonStore", "MarkdownStore"]
