from fastapi import APIRouter, Depends, Request

from secure_files_api.config.settings import Settings
from secure_files_api.dependencies import get_app_settings
from secure_files_api.schemas import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, settings: Settings = Depends(get_app_settings)):
    """
    Health check endpoint for monitoring API status and component readiness.

    Only configuration is inspected; no calls are made to S3 or KMS.
    """
    upload_service = request.app.state.upload_service

    health_status = {
        "status": "ok",
        "deployment_mode": settings.deployment_mode,
        "components": {
            "api": "ready",
            "storage": upload_service.blob_store.describe(),
            "encryption": upload_service.encryptor.describe(),
        },
        "ready": True,
    }

    if not settings.kms_key_id:
        health_status["components"]["encryption"] = "error: KMS_KEY_ID not set"
        health_status["status"] = "degraded"
        health_status["ready"] = False

    return health_status
