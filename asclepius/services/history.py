"""Prediction history storage.

This module provides an abstract append-only history interface and a
concrete implementation that keeps every record in one JSON file. The
file is rewritten in full on each append, so appends are serialized with
a lock to avoid two writers overwriting each other.
"""

import asyncio
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError
from starlette.concurrency import run_in_threadpool

from asclepius.config import settings
from asclepius.errors import StoreReadError, StoreWriteError
from asclepius.logging_config import get_logger
from asclepius.schemas.prediction import FormattedRecord, PredictionRecord

logger = get_logger(__name__)

_records_adapter = TypeAdapter(list[PredictionRecord])


class HistoryStore(ABC):
    """Abstract base class for prediction history.

    Records are only ever appended. Nothing updates or deletes them.
    """

    @abstractmethod
    async def append(self, record: PredictionRecord) -> None:
        """Add a record to the end of the history.

        Raises:
            StoreReadError: If the existing history cannot be parsed
            StoreWriteError: If the history cannot be written
        """
        pass

    @abstractmethod
    async def read_all(self) -> list[PredictionRecord]:
        """Return every record in insertion order.

        An absent history is empty, not an error.

        Raises:
            StoreReadError: If the history exists but cannot be parsed
        """
        pass


class JsonFileHistoryStore(HistoryStore):
    """History kept as a JSON array in a single local file.

    Attributes:
        path: Location of the JSON file
    """

    def __init__(self, path: Optional[str | Path] = None):
        self.path = Path(path or settings.history_path)
        self._write_lock = asyncio.Lock()

    async def append(self, record: PredictionRecord) -> None:
        async with self._write_lock:
            records = await run_in_threadpool(self._load)
            records.append(record)
            await run_in_threadpool(self._dump, records)

        logger.debug(
            "Prediction stored",
            extra={"extra_fields": {"prediction_id": record.id, "total": len(records)}},
        )

    async def read_all(self) -> list[PredictionRecord]:
        return await run_in_threadpool(self._load)

    def _load(self) -> list[PredictionRecord]:
        if not self.path.exists():
            return []

        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise StoreReadError(f"Failed to read history: {e}") from e

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StoreReadError(f"History is not valid JSON: {e}") from e

        if not isinstance(data, list):
            raise StoreReadError("History must be a JSON array")

        try:
            return _records_adapter.validate_python(data)
        except ValidationError as e:
            raise StoreReadError(f"History contains malformed records: {e}") from e

    def _dump(self, records: list[PredictionRecord]) -> None:
        payload = json.dumps(
            [r.model_dump(mode="json", by_alias=True) for r in records],
            indent=2,
            ensure_ascii=False,
        )

        # Write a sibling temp file and swap it in so readers never see a
        # partially written history
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                tmp_file.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreWriteError(f"Failed to write history: {e}") from e


def format_history(records: list[PredictionRecord]) -> list[FormattedRecord]:
    """Wrap records in the presentation shape used by the history endpoint."""
    return [FormattedRecord.from_record(record) for record in records]


# Singleton instance for dependency injection
_history_store: Optional[HistoryStore] = None


def get_history_store() -> HistoryStore:
    """Get the history store instance.

    Returns a singleton JsonFileHistoryStore by default.
    Can be overridden for testing or alternative implementations.
    """
    global _history_store
    if _history_store is None:
        _history_store = JsonFileHistoryStore()
    return _history_store


def set_history_store(store: HistoryStore) -> None:
    """Set the history store instance (for testing)."""
    global _history_store
    _history_store = store
