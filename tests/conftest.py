import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from secure_files_api.config.settings import Settings, get_settings
from secure_files_api.main import create_app
from tests.consts import TEST_BUCKET_NAME, TEST_REGION
from tests.fixtures.fakes import FakeEncryptor, InMemoryBlobStore


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)
    monkeypatch.delenv("AWS_ENDPOINT_URL", raising=False)
    monkeypatch.delenv("AWS_PROFILE", raising=False)


@pytest.fixture
def mocked_aws(aws_credentials):
    """Mock S3 and KMS with an empty test bucket already created."""
    with mock_aws():
        s3_client = boto3.client("s3")
        s3_client.create_bucket(Bucket=TEST_BUCKET_NAME)
        yield


@pytest.fixture
def kms_key_id(mocked_aws) -> str:
    kms_client = boto3.client("kms")
    return kms_client.create_key(Description="test key")["KeyMetadata"]["KeyId"]


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        deployment_mode="aws-prod",
        aws_region=TEST_REGION,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        s3_bucket_name=TEST_BUCKET_NAME,
        kms_key_id=None,
        storage_dir=str(tmp_path / "storage"),
        output_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def client(settings: Settings, kms_key_id: str) -> TestClient:
    """App wired to moto-backed S3 and KMS."""
    app = create_app(settings=settings.model_copy(update={"kms_key_id": kms_key_id}))
    with TestClient(app) as client:
        yield client


@pytest.fixture
def fake_encryptor() -> FakeEncryptor:
    return FakeEncryptor()


@pytest.fixture
def fake_blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def fake_client(settings: Settings, fake_encryptor, fake_blob_store) -> TestClient:
    """App wired to in-memory collaborators; makes no AWS calls."""
    app = create_app(
        settings=settings.model_copy(update={"kms_key_id": "fake-key"}),
        encryptor=fake_encryptor,
        blob_store=fake_blob_store,
    )
    with TestClient(app) as client:
        yield client
