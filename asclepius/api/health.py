"""Health check endpoints."""

import os
import time
from datetime import datetime, timezone

from fastapi import APIRouter

from asclepius.api.deps import ClassifierDep, HistoryDep
from asclepius.config import settings
from asclepius.errors import StoreReadError
from asclepius.logging_config import get_logger
from asclepius.schemas.common import HealthResponse

router = APIRouter()
logger = get_logger(__name__)

# Track application start time for uptime calculation
_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check(classifier: ClassifierDep, store: HistoryDep) -> HealthResponse:
    """Report model and history status.

    The service is degraded when the model failed to load or the history
    cannot be read; it keeps answering either way.
    """
    model_status = "loaded" if classifier.is_ready else "unavailable"

    try:
        records = await store.read_all()
        history_status = "present" if records else "empty"
    except StoreReadError:
        history_status = "unreadable"

    if classifier.is_ready and history_status != "unreadable":
        overall_status = "healthy"
    else:
        overall_status = "degraded"

    logger.debug(
        "Health checked",
        extra={
            "extra_fields": {
                "uptime_seconds": round(time.time() - _start_time, 2),
                "pid": os.getpid(),
            }
        },
    )

    return HealthResponse(
        status=overall_status,
        version=settings.app_version,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc),
        model=model_status,
        history=history_status,
    )


@router.get("/ready")
async def readiness_check(classifier: ClassifierDep) -> dict:
    """Readiness check: ready once the model is loaded."""
    if classifier.is_ready:
        return {"status": "ready"}
    return {"status": "not_ready", "error": classifier.load_error or "Model not loaded"}


@router.get("/live")
async def liveness_check() -> dict:
    """Liveness check."""
    return {"status": "alive"}
