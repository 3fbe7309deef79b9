from __future__ import annotations

from io import BytesIO
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

from app.core.article_service import ArticleService
from app.core.image_service import ImageService
from app.main import create_app
from app.schemas.article import ArticleCreate, ArticleResponse
from app.storage.json_store import JsonStore
from app.storage.markdown_store import MarkdownStore
from app.storage.paths import DataPaths


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Provide a clean temporary data root."""
    return tmp_path / "data"


@pytest.fixture
def data_paths(workspace: Path) -> DataPaths:
    """Provide a path resolver bound to the temporary data root."""
    return DataPaths(root=workspace)


@pytest.fixture
def markdown_store(tmp_path: Path) -> MarkdownStore:
    """Provide a markdown store rooted in its own temporary directory."""
    return MarkdownStore(tmp_path / "markdown")


@pytest.fixture
def article_service(data_paths: DataPaths) -> ArticleService:
    """Provide an article service bound to a temporary data root."""
    return ArticleService(
        paths=data_paths,
        store=JsonStore(),
        markdown_store=MarkdownStore(data_paths.markdown_dir()),
    )


@pytest.fixture
def image_service(data_paths: DataPaths) -> ImageService:
    """Provide an image service with a small upload limit."""
    return ImageService(paths=data_paths, store=JsonStore(), max_image_size=64 * 1024)


@pytest.fixture
def sample_article(article_service: ArticleService) -> ArticleResponse:
    """Create and return a sample draft article."""
    return article_service.create_article(
        ArticleCreate(
            title="Hello World",
            summary="First post",
            tags=["intro", "python"],
            content="# Hello\n\nFirst post body.",
        )
    )


@pytest_asyncio.fixture
async def test_client(workspace: Path) -> AsyncClient:
    """Provide an httpx AsyncClient pointing at the test app."""
    app = create_app(paths=DataPaths(root=workspace), store=JsonStore())
    transport = ASGITransport(app=app)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client


@pytest.fixture
def make_image():
    """Provide a factory that renders small in-memory images."""
    return _render_image


def _render_image(
    *,
    size: tuple[int, int] = (32, 24),
    color: tuple[int, int, int] = (200, 80, 80),
    image_format: str = "PNG",
) -> bytes:
    """Render a small solid-color image in memory."""
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return buffer.getvalue()
