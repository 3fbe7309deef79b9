from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path

from app.core.exceptions import (
    FileOperationError,
    MarkdownFileNotFoundError,
    UnsafePathError,
    ValidationError,
)
from app.storage.json_store import write_text_atomic
from app.storage.paths import resolve_within

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_]")
_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
_DEFAULT_STEM = "untitled"


def _utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


def _has_markdown_suffix(name: str) -> bool:
    return name.lower().endswith(MARKDOWN_SUFFIX)


def _require_path(file_path: str | None) -> str:
    if file_path is None or not file_path.strip():
        raise ValidationError("File path is required.")
    return file_path


class MarkdownStore:
    """Root-confined create/read/update/delete over markdown text files.

    Every path handed in by a caller is a *logical path*: a string relative to
    the store root, as previously returned by `save_markdown_file`. Each one is
    resolved and checked against the root before the disk is touched.
    """

    def __init__(self, root: str | Path) -> None:
        if not str(root).strip():
            raise ValidationError("Markdown root directory is required.")
        self._root = Path(root).expanduser().resolve()
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FileOperationError(
                f"Unable to create markdown storage directory: {self._root}"
            ) from exc

    @property
    def root(self) -> Path:
        """Absolute, normalized root directory of this store."""
        return self._root

    def save_markdown_file(self, filename: str, content: str | None = None) -> str:
        """Write `content` to a new uniquely named file and return its logical path.

        Args:
            filename: Name hint, usually an article slug. `.md` is appended when
                missing and a timestamp plus random suffix is added.
            content: Markdown text; None is stored as an empty file.

        Returns:
            The root-relative path of the new file, using `/` separators.
        """
        if filename is None or not filename.strip():
            raise ValidationError("Filename is required.")
        if not _has_markdown_suffix(filename):
            filename = f"{filename}{MARKDOWN_SUFFIX}"

        unique_filename = self.generate_unique_filename(filename)
        target = self._resolve(unique_filename)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            write_text_atomic(target, content or "")
        except OSError as exc:
            raise FileOperationError(f"Failed to save markdown file: {unique_filename}") from exc

        logical_path = self._to_logical(target)
        logger.info("Saved markdown file %s (%d chars)", logical_path, len(content or ""))
        return logical_path

    def read_markdown_file(self, file_path: str) -> str:
        """Return the full UTF-8 text of an existing markdown file."""
        target = self._resolve_existing(file_path)
        try:
            return target.read_bytes().decode("utf-8")
        except FileNotFoundError as exc:
            raise MarkdownFileNotFoundError(file_path) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise FileOperationError(f"Failed to read markdown file: {file_path}") from exc

    def update_markdown_file(self, file_path: str, content: str | None = None) -> None:
        """Replace the content of an existing markdown file.

        Never creates a file; use `save_markdown_file` for that.
        """
        target = self._resolve_existing(file_path)
        try:
            write_text_atomic(target, content or "")
        except OSError as exc:
            raise FileOperationError(f"Failed to update markdown file: {file_path}") from exc
        logger.info("Updated markdown file %s", file_path)

    def delete_markdown_file(self, file_path: str) -> None:
        """Remove an existing markdown file. Empty parent directories are kept."""
        target = self._resolve_existing(file_path)
        try:
            target.unlink()
        except FileNotFoundError as exc:
            raise MarkdownFileNotFoundError(file_path) from exc
        except OSError as exc:
            raise FileOperationError(f"Failed to delete markdown file: {file_path}") from exc
        logger.info("Deleted markdown file %s", file_path)

    def file_exists(self, file_path: str | None) -> bool:
        """Return whether `file_path` names an existing, safe markdown file.

        Never raises: invalid or unsafe paths and OS errors all count as missing.
        """
        if file_path is None or not file_path.strip():
            return False
        target = self._check(file_path)
        if target is None:
            return False
        try:
            return target.is_file()
        except OSError:
            return False

    def get_file_size(self, file_path: str) -> int:
        """Return the size of an existing markdown file in bytes."""
        target = self._resolve_existing(file_path)
        try:
            return target.stat().st_size
        except FileNotFoundError as exc:
            raise MarkdownFileNotFoundError(file_path) from exc
        except OSError as exc:
            raise FileOperationError(f"Failed to stat markdown file: {file_path}") from exc

    def list_markdown_files(self) -> list[str]:
        """Return logical paths of every safe `.md` file below the root."""
        if not self._root.exists():
            return []
        try:
            return sorted(
                self._to_logical(candidate)
                for candidate in self._root.rglob("*")
                if _has_markdown_suffix(candidate.name) and self._is_listable(candidate)
            )
        except OSError as exc:
            raise FileOperationError("Failed to list markdown files.") from exc

    def generate_unique_filename(self, filename: str) -> str:
        """Derive a filesystem-safe, collision-resistant markdown filename.

        `My Post.md` becomes e.g. `My_Post_20240101_120000_1a2b3c4d.md`.
        """
        stem = filename.strip() if filename else ""
        if not stem:
            stem = _DEFAULT_STEM
        if _has_markdown_suffix(stem):
            stem = stem[: -len(MARKDOWN_SUFFIX)]
        stem = _UNSAFE_FILENAME_CHARS.sub("_", stem)
        timestamp = _utc_now().strftime(_TIMESTAMP_FORMAT)
        return f"{stem}_{timestamp}_{uuid.uuid4().hex[:8]}{MARKDOWN_SUFFIX}"

    def is_valid_file_path(self, file_path: str | Path | None) -> bool:
        """Return whether `file_path` resolves to a markdown file inside the root."""
        if file_path is None or not str(file_path).strip():
            return False
        return self._check(file_path) is not None

    def resolve_path(self, file_path: str) -> Path:
        """Resolve a logical path to its absolute location, enforcing path safety."""
        return self._resolve(_require_path(file_path))

    def _check(self, file_path: str | Path) -> Path | None:
        if ".." in Path(file_path).parts:
            return None
        resolved = resolve_within(self._root, file_path)
        if resolved is None:
            return None
        if "~" in resolved.relative_to(self._root).as_posix():
            return None
        if not _has_markdown_suffix(resolved.name):
            return None
        return resolved

    def _is_listable(self, candidate: Path) -> bool:
        resolved = self._check(candidate)
        return resolved is not None and resolved.is_file()

    def _resolve(self, file_path: str | Path) -> Path:
        resolved = self._check(file_path)
        if resolved is None:
            raise UnsafePathError(f"Unsafe file path: {file_path}")
        return resolved

    def _resolve_existing(self, file_path: str) -> Path:
        target = self._resolve(_require_path(file_path))
        if not target.is_file():
            raise MarkdownFileNotFoundError(file_path)
        return target

    def _to_logical(self, target: Path) -> str:
        return target.relative_to(self._root).as_posix()
