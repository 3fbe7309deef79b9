from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ArticleNotFoundError, ValidationError
from app.core.pagination import paginate
from app.schemas.article import (
    ArticleCreate,
    ArticleListQuery,
    ArticlePage,
    ArticleRecord,
    ArticleResponse,
    ArticlesIndex,
    ArticleStatus,
    ArticleUpdate,
    normalize_tag,
)
from app.schemas.files import FileOperationResult
from app.storage.json_store import JsonStore
from app.storage.markdown_store import MarkdownStore
from app.storage.paths import DataPaths

logger = logging.getLogger(__name__)

_DEFAULT_VERSION = "1.0"
_DEFAULT_SLUG = "article"
_SLUG_STRIP = re.compile(r"[^a-z0-9\s-]")
_SLUG_COLLAPSE = re.compile(r"[\s-]+")


def _utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


def slugify(title: str) -> str:
    """Turn a title into a URL-safe slug base (without uniqueness suffix)."""
    slug = _SLUG_STRIP.sub("", title.lower())
    slug = _SLUG_COLLAPSE.sub("-", slug).strip("-")
    return slug or _DEFAULT_SLUG


def _empty_index() -> dict[str, Any]:
    return ArticlesIndex(version=_DEFAULT_VERSION).model_dump(mode="json")


class ArticleService:
    """Service for article records and their markdown content."""

    def __init__(
        self,
        *,
        paths: DataPaths | None = None,
        store: JsonStore | None = None,
        markdown_store: MarkdownStore | None = None,
    ) -> None:
        self.paths = paths or DataPaths.from_settings()
        self.store = store or JsonStore()
        self.markdown_store = markdown_store or MarkdownStore(self.paths.markdown_dir())

    def create_article(self, payload: ArticleCreate) -> ArticleResponse:
        """Create an article and save its initial markdown body.

        The markdown file is written first; the returned logical path becomes
        the record's `content_path`.
        """
        timestamp = _utc_now()
        slug = self._generate_slug(payload.title, timestamp)
        content_path = self.markdown_store.save_markdown_file(slug, payload.content)

        def insert(index: ArticlesIndex) -> ArticleRecord:
            record = ArticleRecord(
                id=index.next_id,
                title=payload.title,
                slug=slug,
                summary=payload.summary,
                status=payload.status,
                tags=payload.tags,
                content_path=content_path,
                created_at=timestamp,
                updated_at=timestamp,
                published_at=timestamp if payload.status == "PUBLISHED" else None,
            )
            index.next_id += 1
            index.articles.append(record)
            return record

        record = self._mutate_index(insert)
        logger.info("Created article id=%d slug=%s", record.id, record.slug)
        return record.to_response()

    def get_article(self, article_id: int) -> ArticleResponse:
        """Return a single article by ID."""
        return self._get_record(article_id).to_response()

    def get_article_by_slug(self, slug: str) -> ArticleResponse:
        """Return a single article by slug."""
        if not slug or not slug.strip():
            raise ValidationError("Article slug is required.")
        for record in self._load_index().articles:
            if record.slug == slug:
                return record.to_response()
        raise ArticleNotFoundError(f"Article with slug '{slug}' not found.")

    def list_articles(self, query: ArticleListQuery) -> ArticlePage:
        """List articles using filters, sorting, and 0-based pagination."""
        title_query = query.title.lower() if query.title else None
        tag_filter = set(query.tags)

        matches: list[ArticleRecord] = []
        for record in self._load_index().articles:
            if title_query is not None and title_query not in record.title.lower():
                continue
            if tag_filter and tag_filter.isdisjoint(record.tags):
                continue
            if query.status is not None and record.status != query.status:
                continue
            matches.append(record)

        reverse = query.sort_order == "desc"
        if query.sort_by == "title":
            matches.sort(key=lambda record: (record.title.lower(), record.id), reverse=reverse)
        elif query.sort_by == "published_at":
            published = [record for record in matches if record.published_at is not None]
            unpublished = [record for record in matches if record.published_at is None]
            published.sort(key=lambda record: (record.published_at, record.id), reverse=reverse)
            matches = published + sorted(unpublished, key=lambda record: record.id)
        else:
            matches.sort(
                key=lambda record: (getattr(record, query.sort_by), record.id),
                reverse=reverse,
            )

        page = paginate(matches, page=query.page, size=query.size)
        logger.debug(
            "Listed articles page=%d size=%d total=%d",
            page.page,
            page.size,
            page.total_elements,
        )
        return ArticlePage(
            content=[record.to_response() for record in page.items],
            page=page.page,
            size=page.size,
            total_elements=page.total_elements,
            total_pages=page.total_pages,
            first=page.first,
            last=page.last,
        )

    def update_article(self, article_id: int, payload: ArticleUpdate) -> ArticleResponse:
        """Apply a partial update; a provided `content` rewrites the markdown body."""
        if payload.content is not None:
            self.write_content(article_id, payload.content)

        def apply(record: ArticleRecord) -> None:
            if payload.title is not None:
                record.title = payload.title
            if payload.summary is not None:
                record.summary = payload.summary
            if payload.status is not None:
                self._apply_status(record, payload.status)
            if payload.tags is not None:
                record.tags = payload.tags

        record = self._mutate_record(article_id, apply)
        logger.info("Updated article id=%d", article_id)
        return record.to_response()

    def set_status(self, article_id: int, status: ArticleStatus) -> ArticleResponse:
        """Move an article to a new status."""
        record = self._mutate_record(
            article_id, lambda record: self._apply_status(record, status)
        )
        logger.info("Article id=%d is now %s", article_id, status)
        return record.to_response()

    def publish_article(self, article_id: int) -> ArticleResponse:
        """Publish an article, stamping `published_at` on first publication."""
        return self.set_status(article_id, "PUBLISHED")

    def unpublish_article(self, article_id: int) -> ArticleResponse:
        """Return an article to draft; `published_at` is kept as history."""
        return self.set_status(article_id, "DRAFT")

    def archive_article(self, article_id: int) -> ArticleResponse:
        """Archive an article."""
        return self.set_status(article_id, "ARCHIVED")

    def add_tag(self, article_id: int, tag: str) -> ArticleResponse:
        """Add a tag unless the article already carries it."""
        normalized = self._normalize_tag(tag)

        def apply(record: ArticleRecord) -> None:
            if normalized not in record.tags:
                record.tags.append(normalized)

        return self._mutate_record(article_id, apply).to_response()

    def remove_tag(self, article_id: int, tag: str) -> ArticleResponse:
        """Remove a tag if present."""
        normalized = self._normalize_tag(tag)

        def apply(record: ArticleRecord) -> None:
            record.tags = [existing for existing in record.tags if existing != normalized]

        return self._mutate_record(article_id, apply).to_response()

    def delete_article(self, article_id: int, *, delete_content: bool = False) -> None:
        """Delete an article record.

        The markdown file is only removed when `delete_content` is set, and it
        is removed before the record so a failed file deletion keeps the article.
        """
        record = self._get_record(article_id)
        if delete_content:
            if self.markdown_store.file_exists(record.content_path):
                self.markdown_store.delete_markdown_file(record.content_path)
            else:
                logger.warning(
                    "Content file %s for article id=%d was already missing",
                    record.content_path,
                    article_id,
                )

        def remove(index: ArticlesIndex) -> ArticleRecord:
            for position, existing in enumerate(index.articles):
                if existing.id == article_id:
                    return index.articles.pop(position)
            raise ArticleNotFoundError(f"Article {article_id} not found.")

        self._mutate_index(remove)
        logger.info("Deleted article id=%d", article_id)

    def read_content(self, article_id: int) -> str:
        """Return the markdown body of an article."""
        record = self._get_record(article_id)
        logger.debug("Reading content for article id=%d from %s", article_id, record.content_path)
        return self.markdown_store.read_markdown_file(record.content_path)

    def write_content(self, article_id: int, content: str | None) -> FileOperationResult:
        """Store the markdown body of an article.

        Updates the file in place when the article's pointer resolves to an
        existing file; otherwise saves a new file and repoints the article.
        """
        record = self._get_record(article_id)
        content_path = record.content_path

        if self.markdown_store.file_exists(content_path):
            self.markdown_store.update_markdown_file(content_path, content)
        else:
            logger.warning(
                "Content file %s for article id=%d is missing, saving a new file",
                content_path,
                article_id,
            )
            content_path = self.markdown_store.save_markdown_file(
                record.slug, content
            )

            def repoint(target: ArticleRecord) -> None:
                target.content_path = content_path

            self._mutate_record(article_id, repoint)

        logger.info("Saved content for article id=%d at %s", article_id, content_path)
        return FileOperationResult(
            success=True,
            file_path=content_path,
            message="Markdown content saved.",
            timestamp=_utc_now(),
        )

    def _generate_slug(self, title: str, timestamp: datetime) -> str:
        base = f"{slugify(title)}-{int(timestamp.timestamp() * 1000)}"
        existing = {record.slug for record in self._load_index().articles}
        slug = base
        while slug in existing:
            slug = f"{base}-{uuid.uuid4().hex[:4]}"
        return slug

    def _normalize_tag(self, tag: str) -> str:
        try:
            return normalize_tag(tag or "")
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

    def _apply_status(self, record: ArticleRecord, status: ArticleStatus) -> None:
        record.status = status
        if status == "PUBLISHED" and record.published_at is None:
            record.published_at = _utc_now()

    def _get_record(self, article_id: int) -> ArticleRecord:
        for record in self._load_index().articles:
            if record.id == article_id:
                return record
        raise ArticleNotFoundError(f"Article {article_id} not found.")

    def _load_index(self) -> ArticlesIndex:
        payload = self.store.read(self.paths.articles_file(), default_factory=_empty_index)
        return self._validate_index(payload)

    def _validate_index(self, payload: Any) -> ArticlesIndex:
        try:
            return ArticlesIndex.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError("Article index is invalid.") from exc

    def _mutate_index(self, mutation: Callable[[ArticlesIndex], Any]) -> Any:
        result: list[Any] = []

        def update_index(payload: Any) -> dict[str, Any]:
            index = self._validate_index(payload)
            result.append(mutation(index))
            return index.model_dump(mode="json")

        self.store.update(
            self.paths.articles_file(),
            update_index,
            default_factory=_empty_index,
        )
        return result[0]

    def _mutate_record(
        self,
        article_id: int,
        mutation: Callable[[ArticleRecord], None],
    ) -> ArticleRecord:
        def apply(index: ArticlesIndex) -> ArticleRecord:
            for record in index.articles:
                if record.id == article_id:
                    mutation(record)
                    record.updated_at = _utc_now()
                    return record
            raise ArticleNotFoundError(f"Article {article_id} not found.")

        return self._mutate_index(apply)
