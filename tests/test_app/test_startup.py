from __future__ import annotations

from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from app.main import create_app
from app.storage.json_store import JsonStore
from app.storage.paths import DataPaths


@pytest.mark.asyncio
async def test_startup_creates_data_layout(workspace: Path) -> None:
    app = create_app(paths=DataPaths(root=workspace), store=JsonStore())
    assert not (workspace / "images").exists()

    async with app.router.lifespan_context(app):
        assert workspace.exists()
        assert (workspace / "markdown").is_dir()
        assert (workspace / "images").is_dir()


@pytest.mark.asyncio
async def test_health_reports_markdown_file_count(test_client) -> None:
    response = await test_client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "data": {"healthy": True, "markdown_files": 0}}

    await test_client.post("/api/articles", json={"title": "Counted"})

    counted = await test_client.get("/api/health")
    assert counted.json()["data"]["markdown_files"] == 1


@pytest.mark.asyncio
async def test_unhandled_errors_use_error_envelope(workspace: Path) -> None:
    app = create_app(paths=DataPaths(root=workspace), store=JsonStore())

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("boom")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {
        "status": "error",
        "error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred."},
    }
