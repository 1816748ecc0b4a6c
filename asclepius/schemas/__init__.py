"""Pydantic schemas for API validation."""

from asclepius.schemas.common import FailResponse, HealthResponse
from asclepius.schemas.prediction import (
    FormattedRecord,
    HistoryEntry,
    HistoryListResponse,
    PredictionLabel,
    PredictionRecord,
    PredictionResponse,
)

__all__ = [
    "FailResponse",
    "FormattedRecord",
    "HealthResponse",
    "HistoryEntry",
    "HistoryListResponse",
    "PredictionLabel",
    "PredictionRecord",
    "PredictionResponse",
]
