"""
Upload orchestration.

One call to `UploadService.process_upload` handles one file end to end:

    encode -> encrypt -> store envelope -> fetch envelope -> decrypt -> write to disk

The object store only ever receives the JSON envelope; the plaintext bytes
exist in memory and, once reconstructed, in the output directory.
"""

import base64
import binascii
import json
import logging
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from secure_files_api.adapters.encryption import BaseEncryptor, SchemaReference
from secure_files_api.adapters.storage import BaseBlobStore
from secure_files_api.errors import (
    BlobStoreError,
    DecryptionFailedError,
    DownloadFailedError,
    EncryptionFailedError,
    InvalidUploadError,
    UploadFailedError,
)
from secure_files_api.schemas import FileDetails
from secure_files_api.utils.decorators import async_log_execution_time

logger = logging.getLogger(__name__)

ENCRYPTED_SUFFIX = ".encrypted"
ENVELOPE_CONTENT_TYPE = "application/json"


def encrypted_object_key(filename: str) -> str:
    return f"{filename}{ENCRYPTED_SUFFIX}"


def safe_filename(filename: str | None) -> str:
    """Strip any directory components a client put into the upload's filename."""
    name = Path((filename or "").replace("\\", "/")).name
    if name in ("", ".", ".."):
        raise InvalidUploadError()
    return name


class UploadService:
    """Runs the encrypt/store/retrieve/decrypt sequence for single uploads."""

    def __init__(
        self,
        encryptor: BaseEncryptor,
        blob_store: BaseBlobStore,
        schema: SchemaReference,
        output_dir: str | Path,
    ):
        self.encryptor = encryptor
        self.blob_store = blob_store
        self.schema = schema
        self.output_dir = Path(output_dir)

    @async_log_execution_time
    async def process_upload(self, filename: str, content_type: str, content: bytes) -> FileDetails:
        name = safe_filename(filename)
        object_key = encrypted_object_key(name)

        payload = base64.b64encode(content).decode("ascii")

        encrypted = await run_in_threadpool(self.encryptor.encrypt, payload, self.schema)
        if encrypted.failed:
            raise EncryptionFailedError(reason=encrypted.failure)

        envelope_json = json.dumps(encrypted.data).encode("utf-8")
        try:
            await run_in_threadpool(self.blob_store.put, object_key, envelope_json, ENVELOPE_CONTENT_TYPE)
        except BlobStoreError as e:
            raise UploadFailedError(reason=str(e)) from e

        try:
            downloaded = await run_in_threadpool(self.blob_store.get, object_key)
        except BlobStoreError as e:
            raise DownloadFailedError(reason=str(e)) from e
        if downloaded is None:
            raise DownloadFailedError(reason=f"{object_key} not found")

        try:
            envelope = json.loads(downloaded)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecryptionFailedError(reason=f"stored envelope is not JSON: {e}") from e

        decrypted = await run_in_threadpool(self.encryptor.decrypt, envelope)
        if decrypted.failed:
            raise DecryptionFailedError(reason=decrypted.failure)

        try:
            reconstructed = base64.b64decode(decrypted.data, validate=True)
        except (binascii.Error, TypeError, ValueError) as e:
            raise DecryptionFailedError(reason=f"decrypted payload is not base64: {e}") from e

        await run_in_threadpool(self._write_output, name, reconstructed)

        logger.info(
            "File details: %s",
            {
                "name": name,
                "type": content_type,
                "size": len(content),
                "original_size": len(content),
                "reconstructed_size": len(reconstructed),
            },
        )

        return FileDetails(name=name, type=content_type, size=len(content))

    def _write_output(self, name: str, data: bytes) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / name
        path.write_bytes(data)
        return path
