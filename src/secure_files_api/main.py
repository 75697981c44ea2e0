import logging
from textwrap import dedent
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.routing import APIRoute

from secure_files_api.adapters.encryption import BaseEncryptor, SchemaReference, get_encryptor
from secure_files_api.adapters.storage import BaseBlobStore, BlobStoreFactory
from secure_files_api.config.settings import Settings, get_settings
from secure_files_api.errors import (
    SecureFilesError,
    handle_broad_exceptions,
    handle_pydantic_validation_errors,
    handle_secure_files_errors,
)
from secure_files_api.routers.files import router as files_router
from secure_files_api.routers.health import router as health_router
from secure_files_api.services.upload_service import UploadService

# Set up logging
logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


def create_app(
    settings: Optional[Settings] = None,
    encryptor: Optional[BaseEncryptor] = None,
    blob_store: Optional[BaseBlobStore] = None,
) -> FastAPI:
    """Create a FastAPI application.

    Collaborators default to the ones the settings' deployment mode calls for;
    passing them in replaces them (tests use in-memory fakes this way).
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Secure Files API",
        summary="Encrypt files before they reach object storage",
        version="v1",
        description=dedent(
            """\
        Files uploaded to `POST /upload` are base64-encoded, sealed with a
        KMS-backed field-level encryption client and stored as
        `<filename>.encrypted` JSON envelopes. The object store never sees
        plaintext.
        """
        ),
        docs_url="/",  # its easier to find the docs when they live on the base url
        generate_unique_id_function=custom_generate_unique_id,
    )

    schema = SchemaReference(table=settings.schema_table, column=settings.schema_column)
    upload_service = UploadService(
        encryptor=encryptor or get_encryptor(settings),
        blob_store=blob_store or BlobStoreFactory.get_blob_store(settings),
        schema=schema,
        output_dir=settings.output_dir,
    )

    app.state.settings = settings
    app.state.upload_service = upload_service
    logger.info(
        "Upload service ready: storage=%s encryption=%s schema=%s.%s",
        upload_service.blob_store.describe(),
        upload_service.encryptor.describe(),
        schema.table,
        schema.column,
    )

    app.include_router(files_router, tags=["files"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(
        exc_class_or_status_code=SecureFilesError,
        handler=handle_secure_files_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
