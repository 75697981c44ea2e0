from fastapi import APIRouter, Depends, Request
from starlette.datastructures import UploadFile

from secure_files_api.errors import InvalidUploadError
from secure_files_api.schemas import ErrorResponse, UploadFileResponse
from secure_files_api.services.upload_service import UploadService
from secure_files_api.dependencies import get_upload_service

router = APIRouter()

UPLOAD_FIELD_NAME = "file"


@router.post(
    "/upload",
    response_model=UploadFileResponse,
    responses={
        400: {"model": ErrorResponse, "description": "No file provided or invalid file format"},
        500: {"model": ErrorResponse, "description": "Encryption, storage or decryption failed"},
    },
)
async def upload_file(
    request: Request,
    upload_service: UploadService = Depends(get_upload_service),
) -> UploadFileResponse:
    """
    Upload a file, encrypting it before it reaches object storage.

    Expects multipart form data with a single `file` field. The file is
    encrypted, stored as `<filename>.encrypted`, read back, decrypted and
    written to the output directory.

    Returns:
        UploadFileResponse: The file's name, declared type and size
    """
    # The form is parsed by hand so that a missing or non-file field is a 400, not a 422
    form = await request.form()
    file = form.get(UPLOAD_FIELD_NAME)
    if not isinstance(file, UploadFile):
        raise InvalidUploadError()

    content = await file.read()
    details = await upload_service.process_upload(
        filename=file.filename,
        content_type=file.content_type or "",
        content=content,
    )

    return UploadFileResponse(message="File uploaded successfully", file=details)
