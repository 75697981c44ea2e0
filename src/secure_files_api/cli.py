# cli.py
import logging

import click
from botocore.exceptions import ClientError

from secure_files_api.aws_clients import get_kms_client, get_s3_client
from secure_files_api.config.settings import get_settings
from secure_files_api.main import configure_logging

# Configure logging
logger = logging.getLogger(__name__)


@click.group()
def cli():
    """CLI commands for the Secure Files API"""
    configure_logging(get_settings().log_level)


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    print("Current Configuration:")
    print(f"  Deployment Mode: {settings.deployment_mode}")
    print(f"  AWS Region: {settings.aws_region}")
    print(f"  AWS Endpoint: {settings.aws_endpoint_url}")
    print(f"  S3 Bucket: {settings.s3_bucket_name}")
    print(f"  KMS Key: {settings.kms_key_id or '<unset>'}")
    print(f"  Schema: {settings.schema_table}.{settings.schema_column}")
    print(f"  Storage Dir: {settings.storage_dir}")
    print(f"  Output Dir: {settings.output_dir}")


@cli.command()
@click.option("--host", default=None, help="Interface to bind (defaults to HOST setting)")
@click.option("--port", type=int, default=None, help="Port to listen on (defaults to PORT setting)")
@click.option("--reload/--no-reload", default=False, help="Restart on code changes")
def serve(host, port, reload):
    """Start the API server with uvicorn"""
    import uvicorn

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    print(f"Starting Secure Files API on {host}:{port} in {settings.deployment_mode} mode...")

    uvicorn.run(
        "secure_files_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


@cli.command()
@click.option("--key-description", default="secure-files-api data key wrapping",
              help="Description attached to a newly created KMS key")
def bootstrap(key_description):
    """Create the S3 bucket and a KMS key for local or mock environments"""
    settings = get_settings()
    s3 = get_s3_client(settings)
    kms = get_kms_client(settings)

    try:
        if settings.aws_region == "us-east-1":
            s3.create_bucket(Bucket=settings.s3_bucket_name)
        else:
            s3.create_bucket(
                Bucket=settings.s3_bucket_name,
                CreateBucketConfiguration={"LocationConstraint": settings.aws_region},
            )
        print(f"✅ Bucket ready: {settings.s3_bucket_name}")
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code")
        if code not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
            raise click.ClickException(f"Failed to create bucket: {e}")
        print(f"✅ Bucket already exists: {settings.s3_bucket_name}")

    if settings.kms_key_id:
        print(f"✅ Using configured KMS key: {settings.kms_key_id}")
        return

    try:
        key = kms.create_key(
            Description=key_description,
            KeyUsage="ENCRYPT_DECRYPT",
            KeySpec="SYMMETRIC_DEFAULT",
        )
    except ClientError as e:
        raise click.ClickException(f"Failed to create KMS key: {e}")

    key_id = key["KeyMetadata"]["KeyId"]
    print(f"✅ KMS key created: {key_id}")
    print(f"   export KMS_KEY_ID={key_id}")


if __name__ == "__main__":
    cli()
