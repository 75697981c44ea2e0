import importlib
import sys

from mangum import Mangum


def test_lambda_handler_wraps_app(monkeypatch, tmp_path):
    monkeypatch.setenv("S3_BUCKET_NAME", "lambda-bucket")
    monkeypatch.setenv("DEPLOYMENT_MODE", "local-dev")
    monkeypatch.setenv("STORAGE_DIR", str(tmp_path / "storage"))
    monkeypatch.setenv("KMS_KEY_ID", "alias/files")
    monkeypatch.delitem(sys.modules, "secure_files_api.lambda_handler", raising=False)

    module = importlib.import_module("secure_files_api.lambda_handler")

    assert isinstance(module.handler, Mangum)
    assert module.lambda_handler is module.handler
    assert module.app.state.settings.s3_bucket_name == "lambda-bucket"
