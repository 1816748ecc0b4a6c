"""API routes for predictions and prediction history.

A prediction request goes through three stages, in order:

1. Upload gate: body size while streaming, then presence, file size and
   MIME checks. Each failure returns its own message and status
   immediately.
2. Pipeline: decode, preprocess, infer, classify. Every failure here is
   collapsed into one generic message; the cause is only logged.
3. Record: the new record is appended to the history. A write failure is
   reported to the client as a failure, so a returned record is always a
   stored one.
"""

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from asclepius.api.deps import HistoryDep, PipelineDep
from asclepius.errors import APIError, StoreReadError, StoreWriteError
from asclepius.logging_config import get_logger
from asclepius.schemas.common import FailResponse
from asclepius.schemas.prediction import HistoryListResponse, PredictionResponse
from asclepius.services.history import format_history
from asclepius.services.upload_gate import accept_upload, limit_request_body

router = APIRouter()
logger = get_logger(__name__)

IMAGE_FIELD = "image"


@router.post(
    "",
    response_model=PredictionResponse,
    responses={
        400: {"model": FailResponse},
        413: {"model": FailResponse},
        500: {"model": FailResponse},
    },
    # The form is parsed by hand so a missing or non-file ``image`` field
    # gets the same answer; document the body explicitly instead
    openapi_extra={
        "requestBody": {
            "content": {
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            IMAGE_FIELD: {"type": "string", "format": "binary"}
                        },
                        "required": [IMAGE_FIELD],
                    }
                }
            },
            "required": True,
        }
    },
)
async def create_prediction(
    request: Request,
    pipeline: PipelineDep,
    store: HistoryDep,
) -> PredictionResponse:
    """Classify an uploaded image and store the result.

    Expects a multipart form with the image under the ``image`` field,
    at most 1,000,000 bytes, with an ``image/*`` content type.
    """
    # Oversized bodies are cut off while streaming, before the parser spools them
    async with limit_request_body(request).form() as form:
        upload = await accept_upload(form.get(IMAGE_FIELD))

    # Decoding and inference are CPU-bound; keep the event loop free
    record = await run_in_threadpool(pipeline.predict, upload.content)

    try:
        await store.append(record)
    except StoreReadError as e:
        logger.exception("Existing history is unreadable; prediction not stored")
        raise StoreWriteError(e.detail) from e
    except StoreWriteError:
        logger.exception("Failed to store prediction")
        raise

    return PredictionResponse(data=record)


@router.get(
    "/histories",
    response_model=HistoryListResponse,
    responses={500: {"model": FailResponse}},
)
async def list_histories(store: HistoryDep) -> HistoryListResponse:
    """Return every stored prediction, oldest first."""
    try:
        records = await store.read_all()
    except APIError:
        logger.exception("Error fetching histories")
        raise

    return HistoryListResponse(data=format_history(records))
