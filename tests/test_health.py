"""Tests for health check endpoints and application startup."""

from pathlib import Path

import pytest
from httpx import AsyncClient

from asclepius.config import settings
from asclepius.main import app, lifespan
from asclepius.services.classifier import ClassifierService, get_classifier_service
from asclepius.services.history import JsonFileHistoryStore
from tests.conftest import make_image_bytes


@pytest.mark.asyncio
async def test_root_endpoint(client: AsyncClient):
    """Test root endpoint returns app info."""
    response = await client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Asclepius"
    assert "version" in data
    assert "docs" in data


@pytest.mark.asyncio
async def test_liveness_check(client: AsyncClient):
    response = await client.get("/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


class TestReadiness:
    @pytest.mark.asyncio
    async def test_ready_with_loaded_model(self, client: AsyncClient):
        response = await client.get("/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready"}

    @pytest.mark.asyncio
    async def test_not_ready_without_model(self, client: AsyncClient):
        app.dependency_overrides[get_classifier_service] = lambda: ClassifierService()

        response = await client.get("/ready")

        data = response.json()
        assert data["status"] == "not_ready"
        assert "error" in data


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_healthy(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["model"] == "loaded"
        assert data["history"] == "empty"
        assert data["version"] == settings.app_version
        assert "environment" in data
        assert "timestamp" in data

    @pytest.mark.asyncio
    async def test_history_present(
        self, client: AsyncClient, history_store: JsonFileHistoryStore
    ):
        await client.post(
            "/predict",
            files={"image": ("scan.png", make_image_bytes(), "image/png")},
        )

        data = (await client.get("/health")).json()

        assert data["history"] == "present"

    @pytest.mark.asyncio
    async def test_degraded_without_model(self, client: AsyncClient):
        app.dependency_overrides[get_classifier_service] = lambda: ClassifierService()

        data = (await client.get("/health")).json()

        assert data["status"] == "degraded"
        assert data["model"] == "unavailable"

    @pytest.mark.asyncio
    async def test_degraded_with_unreadable_history(
        self, client: AsyncClient, history_store: JsonFileHistoryStore
    ):
        history_store.path.parent.mkdir(parents=True, exist_ok=True)
        history_store.path.write_text("garbage")

        data = (await client.get("/health")).json()

        assert data["status"] == "degraded"
        assert data["history"] == "unreadable"


class TestLifespan:
    """Model loading at startup."""

    @pytest.mark.asyncio
    async def test_startup_loads_model(self, model_path: Path, monkeypatch):
        monkeypatch.setattr(settings, "model_path", str(model_path))

        async with lifespan(app):
            assert get_classifier_service().is_ready is True

    @pytest.mark.asyncio
    async def test_startup_survives_missing_model(self, tmp_path: Path, monkeypatch):
        """A failed load is logged, the app still starts, and it stays unloaded."""
        monkeypatch.setattr(settings, "model_path", str(tmp_path / "missing.onnx"))

        async with lifespan(app):
            classifier = get_classifier_service()
            assert classifier.is_ready is False
            assert "missing.onnx" in classifier.load_error
