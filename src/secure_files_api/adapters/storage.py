"""
Blob storage adapters.

Both stores expose the same two operations: `put` writes bytes under a key and
`get` returns them again, or None when nothing is stored under that key.
Backend failures surface as `BlobStoreError`.
"""

import logging
from pathlib import Path
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from secure_files_api.aws_clients import get_s3_client
from secure_files_api.config.settings import Settings
from secure_files_api.errors import BlobStoreError
from secure_files_api.s3.read_objects import fetch_s3_object_bytes, object_exists_in_s3
from secure_files_api.s3.write_objects import upload_s3_object

logger = logging.getLogger(__name__)


class BaseBlobStore:
    """Base class for blob storage (to be extended by specific implementations)"""

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        raise NotImplementedError

    def get(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def describe(self) -> str:
        return type(self).__name__


class LocalBlobStore(BaseBlobStore):
    """Stores blobs as files under a local directory"""

    def __init__(self, storage_dir: str | Path):
        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        logger.info("LocalBlobStore initialized at: %s", self.storage_dir)

    def _path_for(self, key: str) -> Path:
        path = (self.storage_dir / key).resolve()
        if self.storage_dir.resolve() not in path.parents:
            raise BlobStoreError(f"Key escapes storage directory: {key}")
        return path

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error("Error writing %s: %s", path, str(e))
            raise BlobStoreError(str(e)) from e
        logger.info("Stored %d bytes at %s", len(data), path)

    def get(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            logger.error("Error reading %s: %s", path, str(e))
            raise BlobStoreError(str(e)) from e

    def describe(self) -> str:
        return f"local:{self.storage_dir}"


class S3BlobStore(BaseBlobStore):
    """Stores blobs as objects in a single S3 bucket"""

    def __init__(self, bucket_name: str, s3_client=None):
        self.bucket_name = bucket_name
        self.s3_client = s3_client
        logger.info(f"Using S3 bucket: {self.bucket_name}")

    def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        try:
            upload_s3_object(
                bucket_name=self.bucket_name,
                object_key=key,
                file_content=data,
                content_type=content_type,
                s3_client=self.s3_client,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error uploading to S3: {str(e)}")
            raise BlobStoreError(str(e)) from e
        logger.info(f"Uploaded {key} to s3://{self.bucket_name}")

    def get(self, key: str) -> Optional[bytes]:
        try:
            return fetch_s3_object_bytes(self.bucket_name, key, s3_client=self.s3_client)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error downloading from S3: {str(e)}")
            raise BlobStoreError(str(e)) from e

    def exists(self, key: str) -> bool:
        return object_exists_in_s3(self.bucket_name, key, s3_client=self.s3_client)

    def describe(self) -> str:
        return f"s3://{self.bucket_name}"


class BlobStoreFactory:
    """Factory to initialize the correct blob store based on deployment mode"""

    @staticmethod
    def get_blob_store(settings: Settings) -> BaseBlobStore:
        deployment_mode = settings.deployment_mode
        logger.info(f"Creating blob store for mode: {deployment_mode}")

        if settings.uses_local_storage:
            return LocalBlobStore(settings.storage_dir)
        return S3BlobStore(settings.s3_bucket_name, s3_client=get_s3_client(settings))
