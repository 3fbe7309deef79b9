from __future__ import annotations


class BlogError(Exception):
    """Base exception for all application-level errors."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BlogError):
    """Raised when input data is invalid or a required value is missing."""

    error_code = "VALIDATION_ERROR"
    status_code = 422


class UnsafePathError(BlogError):
    """Raised when a file path escapes its root or targets the wrong file type."""

    error_code = "UNSAFE_PATH"
    status_code = 400


class NotFoundError(BlogError):
    """Raised when an entity is missing."""

    error_code = "NOT_FOUND"
    status_code = 404


class FileOperationError(BlogError):
    """Raised when an underlying read, write, or delete call fails."""

    error_code = "FILE_OPERATION_ERROR"


class MarkdownFileNotFoundError(NotFoundError):
    """Raised when an operation requires an existing markdown file."""

    error_code = "FILE_NOT_FOUND"

    def __init__(self, file_path: str) -> None:
        super().__init__(f"Markdown file not found: {file_path}")
        self.file_path = file_path


class ArticleNotFoundError(NotFoundError):
    """Raised when an article cannot be resolved."""

    error_code = "ARTICLE_NOT_FOUND"


class ImageNotFoundError(NotFoundError):
    """Raised when an image cannot be resolved."""

    error_code = "IMAGE_NOT_FOUND"
