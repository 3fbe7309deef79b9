from __future__ import annotations

import base64
import re

import pytest

from app.core.exceptions import ImageNotFoundError, ValidationError
from app.core.image_service import ImageService


def test_upload_png_stores_file_and_metadata(image_service: ImageService, make_image) -> None:
    data = make_image(size=(40, 30))

    image = image_service.upload_image(
        filename="Holiday Photo.png",
        data=data,
        content_type="image/png",
        description="  Beach  ",
    )

    assert image.id == 1
    assert image.original_name == "Holiday Photo.png"
    assert re.fullmatch(r"Holiday_Photo_\d{8}_\d{6}_[0-9a-f]{8}\.png", image.filename)
    assert image.mime_type == "image/png"
    assert (image.width, image.height) == (40, 30)
    assert image.file_size == len(data)
    assert image.description == "Beach"
    assert image.base64_content is None
    assert (image_service.paths.images_dir() / image.filename).read_bytes() == data


def test_upload_jpeg_uses_detected_format(image_service: ImageService, make_image) -> None:
    image = image_service.upload_image(
        filename="photo.jpeg",
        data=make_image(image_format="JPEG"),
        content_type="image/jpeg",
    )

    assert image.mime_type == "image/jpeg"
    assert image.filename.endswith(".jpg")


def test_upload_strips_client_directories(image_service: ImageService, make_image) -> None:
    image = image_service.upload_image(filename="../../etc/evil.png", data=make_image())

    assert image.original_name == "evil.png"
    assert (image_service.paths.images_dir() / image.filename).is_file()


@pytest.mark.parametrize(
    ("filename", "data", "content_type", "message"),
    [
        ("", b"data", None, "filename is required"),
        ("empty.png", b"", None, "empty"),
        ("big.png", b"x" * (64 * 1024 + 1), None, "maximum size"),
        ("doc.pdf", b"%PDF-1.4", "application/pdf", "Unsupported image type"),
        ("fake.png", b"not an image at all", "image/png", "not a valid image"),
    ],
)
def test_upload_rejects_invalid_input(
    image_service: ImageService,
    filename: str,
    data: bytes,
    content_type: str | None,
    message: str,
) -> None:
    with pytest.raises(ValidationError, match=message):
        image_service.upload_image(filename=filename, data=data, content_type=content_type)

    assert image_service.list_images().total_elements == 0


def test_upload_rejects_unsupported_format(image_service: ImageService, make_image) -> None:
    with pytest.raises(ValidationError, match="Unsupported image format: BMP"):
        image_service.upload_image(filename="pic.bmp", data=make_image(image_format="BMP"))


def test_upload_rejects_long_description(image_service: ImageService, make_image) -> None:
    with pytest.raises(ValidationError, match="Description"):
        image_service.upload_image(
            filename="pic.png", data=make_image(), description="d" * 501
        )


def test_list_images_newest_first_with_paging(image_service: ImageService, make_image) -> None:
    ids = [
        image_service.upload_image(filename=f"img{number}.png", data=make_image()).id
        for number in range(3)
    ]

    first_page = image_service.list_images(page=0, size=2)
    assert [image.id for image in first_page.content] == [ids[2], ids[1]]
    assert first_page.total_elements == 3
    assert first_page.total_pages == 2
    assert first_page.first is True
    assert first_page.last is False

    second_page = image_service.list_images(page=1, size=2)
    assert [image.id for image in second_page.content] == [ids[0]]
    assert second_page.last is True

    with pytest.raises(ValidationError):
        image_service.list_images(page=-1)
    with pytest.raises(ValidationError):
        image_service.list_images(size=0)


def test_get_image_with_base64_content(image_service: ImageService, make_image) -> None:
    data = make_image()
    uploaded = image_service.upload_image(filename="pic.png", data=data)

    plain = image_service.get_image(uploaded.id)
    assert plain.base64_content is None

    with_content = image_service.get_image(uploaded.id, include_content=True)
    assert base64.b64decode(with_content.base64_content) == data


def test_get_image_path_and_missing_file(image_service: ImageService, make_image) -> None:
    uploaded = image_service.upload_image(filename="pic.png", data=make_image())

    image_path = image_service.get_image_path(uploaded.id)
    assert image_path.name == uploaded.filename

    image_path.unlink()
    with pytest.raises(ImageNotFoundError):
        image_service.get_image_path(uploaded.id)
    with pytest.raises(ImageNotFoundError):
        image_service.get_image(uploaded.id, include_content=True)


def test_delete_image_removes_record_and_file(image_service: ImageService, make_image) -> None:
    uploaded = image_service.upload_image(filename="pic.png", data=make_image())
    image_path = image_service.get_image_path(uploaded.id)

    image_service.delete_image(uploaded.id)

    assert not image_path.exists()
    with pytest.raises(ImageNotFoundError):
        image_service.get_image(uploaded.id)
    with pytest.raises(ImageNotFoundError):
        image_service.delete_image(uploaded.id)


def test_delete_image_with_missing_file_still_removes_record(
    image_service: ImageService, make_image
) -> None:
    uploaded = image_service.upload_image(filename="pic.png", data=make_image())
    image_service.get_image_path(uploaded.id).unlink()

    image_service.delete_image(uploaded.id)

    assert image_service.list_images().total_elements == 0
