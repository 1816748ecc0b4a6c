"""Validation of the uploaded image before any processing.

Checks run in a fixed order: request body size, presence, file size, then
declared MIME type. An oversized upload is therefore rejected with 413
whatever its type.

The body limit is enforced while the request streams in, so an oversized
upload is refused before the multipart parser spools it. The file size is
checked again once parsed.

Only the declared MIME type is inspected. The bytes are not sniffed, so a
non-image body sent as ``image/*`` gets through here and fails later in
the decoder.
"""

from dataclasses import dataclass

from starlette.datastructures import UploadFile
from starlette.requests import Request
from starlette.types import Message

from asclepius.errors import (
    MAX_UPLOAD_SIZE_BYTES,
    MissingFile,
    PayloadTooLarge,
    UnsupportedMediaType,
)
from asclepius.logging_config import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 8192  # 8KB chunks
# Room for boundaries and part headers around the file itself
MULTIPART_OVERHEAD_BYTES = 64 * 1024
IMAGE_MIME_PREFIX = "image/"


@dataclass(frozen=True)
class AcceptedUpload:
    """An upload that passed the gate.

    Attributes:
        content: Raw file bytes, unchanged
        content_type: Declared MIME type
        filename: Client-supplied filename, if any
    """

    content: bytes
    content_type: str
    filename: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


def limit_request_body(
    request: Request,
    max_body_bytes: int = MAX_UPLOAD_SIZE_BYTES + MULTIPART_OVERHEAD_BYTES,
) -> Request:
    """Return a view of ``request`` whose body may not exceed ``max_body_bytes``.

    A declared Content-Length over the limit is rejected before any of the
    body is read. Otherwise bytes are counted as they arrive and parsing
    stops with PayloadTooLarge as soon as the limit is passed.

    Raises:
        PayloadTooLarge: If the declared length is over the limit
    """
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > max_body_bytes:
        logger.info(
            "Upload rejected on declared length",
            extra={"extra_fields": {"content_length": int(declared)}},
        )
        raise PayloadTooLarge(f"Declared body of {declared} bytes")

    received = 0

    async def receive() -> Message:
        nonlocal received
        message = await request.receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > max_body_bytes:
                logger.info(
                    "Upload rejected while streaming",
                    extra={"extra_fields": {"received": received}},
                )
                raise PayloadTooLarge(f"Body passed {max_body_bytes} bytes")
        return message

    return Request(request.scope, receive)


async def read_limited(upload: UploadFile, max_size_bytes: int) -> bytes:
    """Read an upload in chunks, aborting once it passes ``max_size_bytes``.

    Raises:
        PayloadTooLarge: If the stream is larger than the limit
    """
    chunks = []
    total_size = 0

    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            break

        total_size += len(chunk)
        if total_size > max_size_bytes:
            raise PayloadTooLarge()

        chunks.append(chunk)

    return b"".join(chunks)


async def accept_upload(
    upload: object,
    max_size_bytes: int = MAX_UPLOAD_SIZE_BYTES,
) -> AcceptedUpload:
    """Validate the value found under the ``image`` form field.

    Args:
        upload: The form value; anything other than an UploadFile counts
                as no file at all
        max_size_bytes: Largest accepted file size

    Returns:
        AcceptedUpload holding the raw bytes

    Raises:
        MissingFile: No file part was sent
        PayloadTooLarge: The file is larger than ``max_size_bytes``
        UnsupportedMediaType: The declared type is not ``image/*``
    """
    if not isinstance(upload, UploadFile):
        raise MissingFile()

    # Size as reported by the multipart parser
    if upload.size is not None and upload.size > max_size_bytes:
        logger.info(
            "Upload rejected at transport size check",
            extra={"extra_fields": {"size": upload.size}},
        )
        raise PayloadTooLarge()

    content = await read_limited(upload, max_size_bytes)

    content_type = upload.content_type or ""
    if not content_type.startswith(IMAGE_MIME_PREFIX):
        raise UnsupportedMediaType()

    logger.debug(
        "Upload accepted",
        extra={
            "extra_fields": {
                "filename": upload.filename,
                "content_type": content_type,
                "size": len(content),
            }
        },
    )
    return AcceptedUpload(
        content=content,
        content_type=content_type,
        filename=upload.filename,
    )
