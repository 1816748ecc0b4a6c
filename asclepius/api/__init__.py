"""API routes package."""

from fastapi import APIRouter

from asclepius.api import health, predictions

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(predictions.router, prefix="/predict", tags=["predictions"])
