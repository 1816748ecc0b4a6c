"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from asclepius.api import api_router
from asclepius.config import settings
from asclepius.errors import ModelLoadError, register_exception_handlers
from asclepius.logging_config import get_logger, setup_logging
from asclepius.middleware import RequestLoggingMiddleware
from asclepius.services.classifier import get_classifier_service

# Initialize logging
setup_logging()
logger = get_logger(__name__)


OPENAPI_TAGS = [
    {
        "name": "health",
        "description": "Health, readiness and liveness checks.",
    },
    {
        "name": "predictions",
        "description": "Upload an image for classification and read the prediction history.",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler."""
    logger.info(
        "Starting Asclepius API",
        extra={
            "extra_fields": {
                "version": settings.app_version,
                "environment": settings.environment,
            }
        },
    )

    # Load the model exactly once. A failed load leaves the server up but
    # every prediction fails until the process is restarted.
    classifier = get_classifier_service()
    try:
        classifier.load(settings.model_path)
    except ModelLoadError:
        logger.exception(
            "Error loading model; predictions are unavailable",
            extra={"extra_fields": {"model_path": settings.model_path}},
        )

    logger.info("Application startup complete")

    yield

    logger.info("Asclepius API stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
# Asclepius API

Classifies uploaded images as `Cancer` or `NonCancer` with a pre-trained
ONNX model and keeps a history of every prediction.

## Uploads

Send the image as multipart field `image`, at most 1,000,000 bytes, with an
`image/*` content type.

## Authentication

There is none. The prediction history is shared by every caller.
    """,
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

# Request logging middleware (adds request ID and timing)
# Note: Middleware is applied in reverse order, so this runs after CORS
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware (outermost, runs first)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/", tags=["health"])
async def root() -> dict:
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
