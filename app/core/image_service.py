from __future__ import annotations

import base64
import logging
import re
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path, PurePath
from typing import Any

from PIL import Image, UnidentifiedImageError
from pydantic import ValidationError as PydanticValidationError

from app.config import DEFAULT_MAX_IMAGE_SIZE
from app.core.exceptions import FileOperationError, ImageNotFoundError, ValidationError
from app.core.pagination import paginate
from app.schemas.image import (
    SUPPORTED_MIME_TYPES,
    ImagePage,
    ImageRecord,
    ImageResponse,
    ImagesIndex,
)
from app.storage.json_store import JsonStore, write_bytes_atomic
from app.storage.paths import DataPaths

logger = logging.getLogger(__name__)

_DEFAULT_VERSION = "1.0"
_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_]")
_MAX_DESCRIPTION_LENGTH = 500
_FORMAT_EXTENSIONS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "GIF": ".gif",
    "WEBP": ".webp",
}


def _utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


def _empty_index() -> dict[str, Any]:
    return ImagesIndex(version=_DEFAULT_VERSION).model_dump(mode="json")


class ImageService:
    """Service for uploaded images and their metadata."""

    def __init__(
        self,
        *,
        paths: DataPaths | None = None,
        store: JsonStore | None = None,
        max_image_size: int = DEFAULT_MAX_IMAGE_SIZE,
    ) -> None:
        self.paths = paths or DataPaths.from_settings()
        self.store = store or JsonStore()
        self.max_image_size = max_image_size

    def upload_image(
        self,
        *,
        filename: str,
        data: bytes,
        content_type: str | None = None,
        description: str | None = None,
    ) -> ImageResponse:
        """Validate and store an uploaded image.

        Args:
            filename: Client-side filename, kept as `original_name`.
            data: Raw file bytes.
            content_type: MIME type declared by the client, if any.
            description: Optional free-text description.

        Returns:
            The persisted image metadata.
        """
        original_name = PurePath(filename.replace("\\", "/")).name.strip() if filename else ""
        if not original_name:
            raise ValidationError("Image filename is required.")
        if not data:
            raise ValidationError("Uploaded image is empty.")
        if len(data) > self.max_image_size:
            raise ValidationError(
                f"Image exceeds maximum size of {self.max_image_size} bytes."
            )
        if content_type and content_type.lower() not in SUPPORTED_MIME_TYPES:
            raise ValidationError(f"Unsupported image type: {content_type}")
        if description and len(description.strip()) > _MAX_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Description must be {_MAX_DESCRIPTION_LENGTH} characters or fewer."
            )

        image_format, width, height = self._inspect(data)
        stored_name = self._generate_filename(original_name, image_format)
        images_dir = self.paths.images_dir()
        try:
            images_dir.mkdir(parents=True, exist_ok=True)
            write_bytes_atomic(images_dir / stored_name, data)
        except OSError as exc:
            raise FileOperationError(f"Failed to store image: {original_name}") from exc

        created_at = _utc_now()
        normalized_description = description.strip() if description else None

        def insert(index: ImagesIndex) -> ImageRecord:
            record = ImageRecord(
                id=index.next_id,
                filename=stored_name,
                original_name=original_name[:255],
                file_path=stored_name,
                file_size=len(data),
                mime_type=Image.MIME[image_format],
                width=width,
                height=height,
                description=normalized_description or None,
                created_at=created_at,
            )
            index.next_id += 1
            index.images.append(record)
            return record

        record = self._mutate_index(insert)
        logger.info(
            "Uploaded image id=%d filename=%s size=%d",
            record.id,
            record.filename,
            record.file_size,
        )
        return record.to_response()

    def list_images(self, *, page: int = 0, size: int = 20) -> ImagePage:
        """List images newest first using 0-based pagination."""
        if page < 0:
            raise ValidationError("Page must be zero or greater.")
        if size < 1:
            raise ValidationError("Page size must be at least 1.")

        records = sorted(
            self._load_index().images,
            key=lambda record: (record.created_at, record.id),
            reverse=True,
        )
        sliced = paginate(records, page=page, size=size)
        return ImagePage(
            content=[record.to_response() for record in sliced.items],
            page=sliced.page,
            size=sliced.size,
            total_elements=sliced.total_elements,
            total_pages=sliced.total_pages,
            first=sliced.first,
            last=sliced.last,
        )

    def get_image(self, image_id: int, *, include_content: bool = False) -> ImageResponse:
        """Return image metadata, optionally with Base64-encoded file content."""
        record = self._get_record(image_id)
        if not include_content:
            return record.to_response()
        try:
            raw = self._resolve_file(record).read_bytes()
        except OSError as exc:
            raise FileOperationError(f"Failed to read image {image_id}.") from exc
        encoded = base64.b64encode(raw).decode("ascii")
        return record.to_response(base64_content=encoded)

    def get_image_path(self, image_id: int) -> Path:
        """Resolve the stored file of an image."""
        return self._resolve_file(self._get_record(image_id))

    def delete_image(self, image_id: int) -> None:
        """Delete an image record and its stored file."""

        def remove(index: ImagesIndex) -> ImageRecord:
            for position, record in enumerate(index.images):
                if record.id == image_id:
                    return index.images.pop(position)
            raise ImageNotFoundError(f"Image {image_id} not found.")

        removed = self._mutate_index(remove)
        image_path = self.paths.image_file(removed.file_path)
        if image_path is None or not image_path.exists():
            logger.warning("Image file for id=%d was already missing", image_id)
        else:
            try:
                image_path.unlink()
            except OSError:
                logger.warning("Failed to remove image file %s", image_path, exc_info=True)
        logger.info("Deleted image id=%d", image_id)

    def _inspect(self, data: bytes) -> tuple[str, int, int]:
        try:
            with Image.open(BytesIO(data)) as image:
                image_format = image.format or ""
                width, height = image.size
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as exc:
            raise ValidationError("Uploaded file is not a valid image.") from exc

        if image_format not in _FORMAT_EXTENSIONS:
            raise ValidationError(f"Unsupported image format: {image_format or 'unknown'}")
        return image_format, width, height

    def _generate_filename(self, original_name: str, image_format: str) -> str:
        stem = _UNSAFE_FILENAME_CHARS.sub("_", PurePath(original_name).stem) or "image"
        timestamp = _utc_now().strftime(_TIMESTAMP_FORMAT)
        return f"{stem}_{timestamp}_{uuid.uuid4().hex[:8]}{_FORMAT_EXTENSIONS[image_format]}"

    def _resolve_file(self, record: ImageRecord) -> Path:
        image_path = self.paths.image_file(record.file_path)
        if image_path is None or not image_path.is_file():
            raise ImageNotFoundError(f"Image file for {record.id} is missing on disk.")
        return image_path

    def _get_record(self, image_id: int) -> ImageRecord:
        for record in self._load_index().images:
            if record.id == image_id:
                return record
        raise ImageNotFoundError(f"Image {image_id} not found.")

    def _load_index(self) -> ImagesIndex:
        payload = self.store.read(self.paths.images_index_file(), default_factory=_empty_index)
        return self._validate_index(payload)

    def _validate_index(self, payload: Any) -> ImagesIndex:
        try:
            return ImagesIndex.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError("Image index is invalid.") from exc

    def _mutate_index(self, mutation: Callable[[ImagesIndex], Any]) -> Any:
        result: list[Any] = []

        def update_index(payload: Any) -> dict[str, Any]:
            index = self._validate_index(payload)
            result.append(mutation(index))
            return index.model_dump(mode="json")

        self.store.update(
            self.paths.images_index_file(),
            update_index,
            default_factory=_empty_index,
        )
        return result[0]
