"""Error taxonomy and the handlers that render it.

Two families live here:

- ``APIError`` subclasses are user-facing. Each carries the HTTP status and
  the fixed message returned in the ``{"status": "fail", ...}`` envelope.
- ``PipelineError`` subclasses are internal to the prediction pipeline.
  They are logged with full detail and then collapsed into
  ``PredictionFailed`` so nothing about the model or the decoder leaks to
  the caller.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from asclepius.logging_config import get_logger

logger = get_logger(__name__)

MAX_UPLOAD_SIZE_BYTES = 1_000_000


class APIError(Exception):
    """Base exception for errors returned to the client."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, detail: str | None = None):
        # detail is for logs only; clients always get the fixed message
        self.detail = detail or self.message
        super().__init__(self.detail)


class MissingFile(APIError):
    """Raised when the request carries no ``image`` file part."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "No file uploaded"


class PayloadTooLarge(APIError):
    """Raised when the uploaded file exceeds the upload limit."""

    status_code = status.HTTP_413_CONTENT_TOO_LARGE
    message = f"Payload content length greater than maximum allowed: {MAX_UPLOAD_SIZE_BYTES}"


class UnsupportedMediaType(APIError):
    """Raised when the declared MIME type is not ``image/*``."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Uploaded file is not an image"


class PredictionFailed(APIError):
    """Raised for any failure between decoding and classification."""

    status_code = status.HTTP_400_BAD_REQUEST
    message = "Terjadi kesalahan dalam melakukan prediksi"


class StoreReadError(APIError):
    """Raised when the prediction history exists but cannot be read."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Terjadi kesalahan saat mengambil riwayat prediksi"


class StoreWriteError(APIError):
    """Raised when a prediction cannot be written to the history."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Terjadi kesalahan saat menyimpan hasil prediksi"


class PipelineError(Exception):
    """Base exception for prediction pipeline steps."""

    pass


class DecodeError(PipelineError):
    """Raised when the uploaded bytes are not a decodable image."""

    pass


class ModelUnavailable(PipelineError):
    """Raised when inference is requested before a model was loaded."""

    pass


class ModelLoadError(PipelineError):
    """Raised when the classifier model fails to load."""

    pass


class InferenceError(PipelineError):
    """Raised when the model runtime fails during inference."""

    pass


def fail_response(
    status_code: int, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    """Build the ``{"status": "fail", "message": ...}`` envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"status": "fail", "message": message},
        headers=headers,
    )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.info(
        "Request rejected: %s",
        type(exc).__name__,
        extra={"extra_fields": {"status_code": exc.status_code, "detail": exc.detail}},
    )
    return fail_response(exc.status_code, exc.message)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info(
        "Request validation failed",
        extra={"extra_fields": {"errors": exc.errors()}},
    )
    return fail_response(status.HTTP_400_BAD_REQUEST, "Invalid request")


async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    # Raised by the framework itself: unparseable multipart bodies, unknown
    # routes, wrong methods
    logger.info(
        "HTTP error: %s",
        exc.detail,
        extra={"extra_fields": {"status_code": exc.status_code}},
    )
    return fail_response(exc.status_code, str(exc.detail), headers=exc.headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every client-facing error with the fail envelope."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
