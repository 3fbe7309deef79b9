from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from app.config import Settings, get_settings


def resolve_within(base: Path, candidate: str | Path) -> Path | None:
    """Resolve `candidate` against `base` and return it only if it stays inside.

    Absolute candidates are honoured as-is, so they pass only when they already
    point below `base`. Returns None for anything that escapes or cannot be
    resolved (for example strings with embedded null bytes).
    """
    if "\x00" in str(candidate):
        return None
    try:
        resolved = (base / candidate).resolve()
    except (OSError, ValueError):
        return None
    if resolved == base or not resolved.is_relative_to(base):
        return None
    return resolved


@dataclass(frozen=True, slots=True)
class DataPaths:
    """Centralized path resolution for blog data on disk."""

    root: Path
    markdown_root: Path | None = None
    images_root: Path | None = None

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> DataPaths:
        """Create a path resolver from current runtime settings."""
        resolved = settings or get_settings()
        return cls(
            root=resolved.data_root,
            markdown_root=resolved.markdown_root,
            images_root=resolved.images_root,
        )

    def markdown_dir(self) -> Path:
        """Return the root directory for markdown content files."""
        return self.markdown_root or self.root / "markdown"

    def images_dir(self) -> Path:
        """Return the directory that holds uploaded image files."""
        return self.images_root or self.root / "images"

    def articles_file(self) -> Path:
        """Return the path to `articles.json`."""
        return self.root / "articles.json"

    def images_index_file(self) -> Path:
        """Return the path to `images.json`."""
        return self.root / "images.json"

    def ensure_layout(self) -> None:
        """Create the top-level data directories."""
        for directory in (self.root, self.markdown_dir(), self.images_dir()):
            directory.mkdir(parents=True, exist_ok=True)

    def image_file(self, stored_path: str) -> Path | None:
        """Resolve a stored image path, or None if it escapes the images dir."""
        return resolve_within(self.images_dir().resolve(), stored_path)
