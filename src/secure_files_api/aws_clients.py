"""AWS client construction driven by application settings."""
import logging
from typing import Any

import boto3

from secure_files_api.config.settings import LOCAL_MODES, Settings

logger = logging.getLogger(__name__)


def get_client(service_name: str, settings: Settings) -> Any:
    """Create a boto3 client for `service_name` configured from `settings`.

    Credentials are only passed through when they are set, so in aws-prod the
    default credential chain (env vars, profile, execution role) applies.
    """
    client_kwargs = {
        "region_name": settings.aws_region,
    }

    if settings.aws_access_key_id:
        client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
    if settings.aws_secret_access_key:
        client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

    # Add endpoint URL for local/mock modes
    if settings.aws_endpoint_url and settings.deployment_mode in LOCAL_MODES:
        client_kwargs["endpoint_url"] = settings.aws_endpoint_url

    try:
        client = boto3.client(service_name, **client_kwargs)
    except Exception as e:
        logger.error(f"Error creating {service_name} client: {str(e)}")
        raise

    logger.debug(f"Created {service_name} client (mode={settings.deployment_mode})")
    return client


def get_s3_client(settings: Settings):
    """Get an S3 client."""
    return get_client("s3", settings)


def get_kms_client(settings: Settings):
    """Get a KMS client."""
    return get_client("kms", settings)
