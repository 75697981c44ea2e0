####################################
# --- Request/response schemas --- #
####################################

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class FileDetails(BaseModel):
    """Metadata of an uploaded file. Never carries the file content."""
    name: str = Field(
        description="The original filename.",
        json_schema_extra={"example": "a.txt"},
    )
    type: str = Field(description="The MIME type declared by the client.")
    size: int = Field(description="The size of the file in bytes.")


class UploadFileResponse(BaseModel):
    """Response model for `POST /upload`."""
    message: str = Field(description="A message about the operation.")
    file: FileDetails

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "File uploaded successfully",
                "file": {"name": "a.txt", "type": "text/plain", "size": 10},
            }
        }
    )


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response raised by the upload flow."""
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    """Response model for `GET /health`."""
    status: str
    deployment_mode: str
    components: Dict[str, str]
    ready: bool
