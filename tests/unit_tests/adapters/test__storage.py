import boto3
import pytest

from secure_files_api.adapters.storage import BlobStoreFactory, LocalBlobStore, S3BlobStore
from secure_files_api.config.settings import Settings
from secure_files_api.errors import BlobStoreError
from tests.consts import TEST_BUCKET_NAME

TEST_KEY = "a.txt.encrypted"
TEST_BODY = b'{"v": 1}'


@pytest.fixture
def local_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "storage")


@pytest.fixture
def s3_store(mocked_aws) -> S3BlobStore:
    return S3BlobStore(TEST_BUCKET_NAME, s3_client=boto3.client("s3"))


def test_local_put_and_get(local_store: LocalBlobStore, tmp_path):
    local_store.put(TEST_KEY, TEST_BODY, "application/json")

    assert local_store.get(TEST_KEY) == TEST_BODY
    assert (tmp_path / "storage" / TEST_KEY).read_bytes() == TEST_BODY


def test_local_get_missing(local_store: LocalBlobStore):
    assert local_store.get("missing.encrypted") is None


def test_local_overwrite(local_store: LocalBlobStore):
    local_store.put(TEST_KEY, b"first")
    local_store.put(TEST_KEY, b"second")

    assert local_store.get(TEST_KEY) == b"second"


def test_local_rejects_keys_outside_storage_dir(local_store: LocalBlobStore):
    with pytest.raises(BlobStoreError):
        local_store.put("../escape.encrypted", TEST_BODY)


def test_s3_put_and_get(s3_store: S3BlobStore):
    s3_store.put(TEST_KEY, TEST_BODY, "application/json")

    assert s3_store.exists(TEST_KEY)
    assert s3_store.get(TEST_KEY) == TEST_BODY

    head = boto3.client("s3").head_object(Bucket=TEST_BUCKET_NAME, Key=TEST_KEY)
    assert head["ContentType"] == "application/json"


def test_s3_get_missing(s3_store: S3BlobStore):
    assert s3_store.get("missing.encrypted") is None
    assert not s3_store.exists("missing.encrypted")


def test_s3_missing_bucket_raises(mocked_aws):
    store = S3BlobStore("no-such-bucket", s3_client=boto3.client("s3"))

    with pytest.raises(BlobStoreError):
        store.put(TEST_KEY, TEST_BODY)
    with pytest.raises(BlobStoreError):
        store.get(TEST_KEY)


def test_factory_local_dev(tmp_path):
    settings = Settings(
        _env_file=None,
        deployment_mode="local-dev",
        s3_bucket_name=TEST_BUCKET_NAME,
        storage_dir=str(tmp_path / "storage"),
    )

    store = BlobStoreFactory.get_blob_store(settings)

    assert isinstance(store, LocalBlobStore)
    assert store.describe() == f"local:{tmp_path / 'storage'}"


def test_factory_aws_prod(settings, mocked_aws):
    store = BlobStoreFactory.get_blob_store(settings)

    assert isinstance(store, S3BlobStore)
    assert store.describe() == f"s3://{TEST_BUCKET_NAME}"
