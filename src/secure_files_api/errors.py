"""Error types and FastAPI handlers for the Secure Files API."""

import logging
import traceback

import pydantic
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SecureFilesError(Exception):
    """Base class for failures that map onto a specific HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Failed to upload file"

    def __init__(self, message: str | None = None, reason: str | None = None):
        self.message = message or self.message
        self.reason = reason
        super().__init__(self.message if reason is None else f"{self.message}: {reason}")


class InvalidUploadError(SecureFilesError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "No file provided or invalid file format"


class EncryptionFailedError(SecureFilesError):
    message = "Failed to encrypt file"


class UploadFailedError(SecureFilesError):
    message = "Failed to store encrypted file"


class DownloadFailedError(SecureFilesError):
    message = "Failed to download file"


class DecryptionFailedError(SecureFilesError):
    message = "Failed to decrypt file"


class BlobStoreError(Exception):
    """Raised by a blob store when the backend cannot be written or read."""


async def handle_secure_files_errors(request: Request, exc: SecureFilesError) -> JSONResponse:
    """Render a classified failure as `{"error": <message>}`."""
    if exc.reason:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.reason)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
    )


async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": [
                {
                    "msg": error["msg"],
                    "input": error["input"],
                }
                for error in errors
            ]
        },
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates out of a route as a generic 500."""
    try:
        return await call_next(request)
    except Exception as err:
        logger.error(
            "Detailed error: %s",
            {
                "message": str(err),
                "name": type(err).__name__,
                "stack": traceback.format_exc(),
            },
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to upload file", "details": str(err)},
        )
