from fastapi import Request

from secure_files_api.config.settings import Settings
from secure_files_api.services.upload_service import UploadService


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings


def get_upload_service(request: Request) -> UploadService:
    """Upload service wired up once in `create_app`."""
    return request.app.state.upload_service
