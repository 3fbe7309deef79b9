"""API routers for the blog backend."""

from app.api import articles, files, health, images

__all__ = ["articles", "files", "health", "images"]
