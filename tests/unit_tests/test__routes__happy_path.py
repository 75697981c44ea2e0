import json
from pathlib import Path

import boto3
from fastapi import status
from fastapi.testclient import TestClient

from secure_files_api.main import create_app
from tests.consts import (
    TEST_BUCKET_NAME,
    TEST_FILE_CONTENT,
    TEST_FILE_CONTENT_TYPE,
    TEST_FILE_NAME,
    TEST_PDF_CONTENT,
    TEST_PDF_CONTENT_TYPE,
    TEST_PDF_NAME,
)


def test__upload_file__happy_path(settings, kms_key_id, tmp_path, monkeypatch):
    # decrypted files land in ./uploads relative to the working directory
    monkeypatch.chdir(tmp_path)
    app = create_app(settings=settings.model_copy(update={"kms_key_id": kms_key_id, "output_dir": "uploads"}))

    with TestClient(app) as client:
        response = client.post(
            "/upload",
            files={"file": (TEST_FILE_NAME, TEST_FILE_CONTENT, TEST_FILE_CONTENT_TYPE)},
        )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "message": "File uploaded successfully",
        "file": {"name": "a.txt", "type": "text/plain", "size": 10},
    }

    # the bucket holds a JSON envelope, never the raw bytes
    s3_client = boto3.client("s3")
    stored = s3_client.get_object(Bucket=TEST_BUCKET_NAME, Key="a.txt.encrypted")
    assert stored["ContentType"] == "application/json"
    body = stored["Body"].read()
    assert body != TEST_FILE_CONTENT
    assert TEST_FILE_CONTENT not in body
    assert isinstance(json.loads(body), dict)

    assert (tmp_path / "uploads" / "a.txt").read_bytes() == TEST_FILE_CONTENT


def test__upload_binary_file__round_trips_byte_for_byte(client: TestClient, settings):
    content = bytes(range(256)) * 64

    response = client.post(
        "/upload",
        files={"file": ("blob.bin", content, "application/octet-stream")},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["file"] == {"name": "blob.bin", "type": "application/octet-stream", "size": len(content)}
    assert (Path(settings.output_dir) / "blob.bin").read_bytes() == content


def test__upload_same_name_twice__last_write_wins(client: TestClient, settings):
    for content in (TEST_PDF_CONTENT, b"%PDF-1.4 replaced"):
        response = client.post(
            "/upload",
            files={"file": (TEST_PDF_NAME, content, TEST_PDF_CONTENT_TYPE)},
        )
        assert response.status_code == status.HTTP_200_OK

    assert (Path(settings.output_dir) / TEST_PDF_NAME).read_bytes() == b"%PDF-1.4 replaced"


def test__upload_empty_file(client: TestClient, settings):
    response = client.post("/upload", files={"file": ("empty.txt", b"", "text/plain")})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["file"]["size"] == 0
    assert (Path(settings.output_dir) / "empty.txt").read_bytes() == b""


def test__response_never_contains_file_content(client: TestClient):
    secret = b"super secret payload"
    response = client.post("/upload", files={"file": ("secret.txt", secret, "text/plain")})

    assert response.status_code == status.HTTP_200_OK
    assert secret.decode() not in response.text


def test__health(fake_client: TestClient):
    response = fake_client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ok"
    assert data["deployment_mode"] == "aws-prod"
    assert data["ready"] is True
    assert set(data["components"]) == {"api", "storage", "encryption"}


def test__health__degraded_without_kms_key(settings, fake_encryptor, fake_blob_store):
    app = create_app(settings=settings, encryptor=fake_encryptor, blob_store=fake_blob_store)

    with TestClient(app) as client:
        data = client.get("/health").json()

    assert data["status"] == "degraded"
    assert data["ready"] is False
