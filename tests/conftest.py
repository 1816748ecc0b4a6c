"""Pytest fixtures for testing."""

import io
from pathlib import Path
from typing import AsyncGenerator

import onnx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from onnx import TensorProto, helper
from PIL import Image

from asclepius.main import app
from asclepius.services.classifier import (
    ClassifierService,
    get_classifier_service,
    reset_classifier_service,
)
from asclepius.services.history import JsonFileHistoryStore, get_history_store


def create_mean_pixel_model(input_name: str = "input") -> onnx.ModelProto:
    """Create a stand-in classifier for testing.

    The model scores an image as the mean of all its pixel values, so a
    uniform image with channel value ``v`` scores ``v / 255``.
    Input shape: [batch_size, 224, 224, 3] (float32)
    Output shape: [batch_size, 1] (float32)
    """
    X = helper.make_tensor_value_info(
        input_name, TensorProto.FLOAT, ["batch_size", 224, 224, 3]
    )
    Y = helper.make_tensor_value_info("score", TensorProto.FLOAT, ["batch_size", 1])

    mean_node = helper.make_node(
        "ReduceMean",
        inputs=[input_name],
        outputs=["mean"],
        axes=[1, 2, 3],
        keepdims=1,
        name="mean_pixels",
    )
    flatten_node = helper.make_node(
        "Flatten",
        inputs=["mean"],
        outputs=["score"],
        axis=1,
        name="to_score",
    )

    graph = helper.make_graph(
        nodes=[mean_node, flatten_node],
        name="mean_pixel_classifier",
        inputs=[X],
        outputs=[Y],
    )
    model = helper.make_model(
        graph,
        producer_name="asclepius-tests",
        opset_imports=[helper.make_opsetid("", 13)],
    )
    # IR version 8 for onnxruntime compatibility
    model.ir_version = 8
    onnx.checker.check_model(model)
    return model


def make_image_bytes(
    color: int | tuple[int, ...] = 232,
    size: tuple[int, int] = (224, 224),
    mode: str = "RGB",
    fmt: str = "PNG",
) -> bytes:
    """Encode a uniform image; a grey level of 232 scores 0.91."""
    if isinstance(color, int) and mode == "RGB":
        color = (color, color, color)
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def model_path(tmp_path: Path) -> Path:
    """Path to a saved mean-pixel ONNX model."""
    path = tmp_path / "model.onnx"
    onnx.save(create_mean_pixel_model(), str(path))
    return path


@pytest.fixture
def classifier(model_path: Path) -> ClassifierService:
    """A classifier with the mean-pixel model loaded."""
    service = ClassifierService()
    service.load(model_path)
    return service


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "predictions.json"


@pytest.fixture
def history_store(history_path: Path) -> JsonFileHistoryStore:
    return JsonFileHistoryStore(history_path)


@pytest_asyncio.fixture
async def client(
    classifier: ClassifierService, history_store: JsonFileHistoryStore
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with overridden dependencies."""
    app.dependency_overrides[get_classifier_service] = lambda: classifier
    app.dependency_overrides[get_history_store] = lambda: history_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_classifier_singleton():
    """Reset the classifier singleton around each test."""
    reset_classifier_service()
    yield
    reset_classifier_service()
