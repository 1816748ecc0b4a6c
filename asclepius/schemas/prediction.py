"""Pydantic schemas for predictions and prediction history."""

import enum
import uuid
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class PredictionLabel(str, enum.Enum):
    """Binary classifier outcome."""

    CANCER = "Cancer"
    NON_CANCER = "NonCancer"


def new_record_id() -> str:
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PredictionRecord(BaseModel):
    """One persisted prediction. Immutable once created."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_record_id)
    result: PredictionLabel
    suggestion: str
    created_at: str = Field(default_factory=utc_timestamp, alias="createdAt")


class HistoryEntry(BaseModel):
    """Nested record inside a history item."""

    model_config = ConfigDict(populate_by_name=True)

    result: PredictionLabel
    created_at: str = Field(alias="createdAt")
    suggestion: str
    id: str


class FormattedRecord(BaseModel):
    """History item; ``id`` appears both here and inside ``history``."""

    id: str
    history: HistoryEntry

    @classmethod
    def from_record(cls, record: PredictionRecord) -> "FormattedRecord":
        return cls(
            id=record.id,
            history=HistoryEntry(
                result=record.result,
                created_at=record.created_at,
                suggestion=record.suggestion,
                id=record.id,
            ),
        )


class PredictionResponse(BaseModel):
    """Response for a successful prediction."""

    status: Literal["success"] = "success"
    message: str = "Model is predicted successfully"
    data: PredictionRecord


class HistoryListResponse(BaseModel):
    """Response for the prediction history."""

    status: Literal["success"] = "success"
    data: list[FormattedRecord]
