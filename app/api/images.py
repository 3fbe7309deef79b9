from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse

from app.api.dependencies import get_image_service
from app.api.responses import ok_response
from app.core.exceptions import ValidationError
from app.core.image_service import ImageService

router = APIRouter()
ImageServiceDep = Annotated[ImageService, Depends(get_image_service)]
_CHUNK_SIZE_BYTES = 1024 * 1024


async def _read_limited(file: UploadFile, max_size: int) -> bytes:
    chunks: list[bytes] = []
    size_bytes = 0
    while True:
        chunk = await file.read(_CHUNK_SIZE_BYTES)
        if not chunk:
            break
        size_bytes += len(chunk)
        if size_bytes > max_size:
            raise ValidationError(f"Image exceeds maximum size of {max_size} bytes.")
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/upload")
async def upload_image(
    file: Annotated[UploadFile, File()],
    image_service: ImageServiceDep,
    description: Annotated[str | None, Form()] = None,
) -> dict[str, object]:
    """Upload a single image."""
    try:
        data = await _read_limited(file, image_service.max_image_size)
    finally:
        await file.close()

    image = image_service.upload_image(
        filename=file.filename or "",
        data=data,
        content_type=file.content_type,
        description=description,
    )
    return ok_response(image.model_dump(mode="json"))


@router.get("")
async def list_images(
    image_service: ImageServiceDep,
    page: Annotated[int, Query(ge=0)] = 0,
    size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict[str, object]:
    """List uploaded images, newest first."""
    listing = image_service.list_images(page=page, size=size)
    return ok_response(listing.model_dump(mode="json"))


@router.get("/{image_id}")
async def get_image(
    image_id: int,
    image_service: ImageServiceDep,
    include_content: Annotated[bool, Query()] = False,
) -> dict[str, object]:
    """Return image metadata, optionally with Base64 content."""
    image = image_service.get_image(image_id, include_content=include_content)
    return ok_response(image.model_dump(mode="json"))


@router.get("/{image_id}/file")
async def get_image_file(
    image_id: int,
    image_service: ImageServiceDep,
) -> FileResponse:
    """Serve the stored image file."""
    image = image_service.get_image(image_id)
    return FileResponse(path=image_service.get_image_path(image_id), media_type=image.mime_type)


@router.delete("/{image_id}")
async def delete_image(
    image_id: int,
    image_service: ImageServiceDep,
) -> dict[str, object]:
    """Delete an image and its stored file."""
    image_service.delete_image(image_id)
    return ok_response({"image_id": image_id, "deleted": True})
