"""Common schemas used across the API."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


class FailResponse(BaseModel):
    """Error envelope returned for every rejected request."""

    status: Literal["fail"] = "fail"
    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    environment: str
    timestamp: datetime = Field(default_factory=_utc_now)
    model: str = "loaded"
    history: str = "empty"
