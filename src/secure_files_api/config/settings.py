# src/secure_files_api/config/settings.py
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

LOCAL_MODES = ["local-dev", "aws-mock"]
VALID_MODES = ["local-dev", "aws-mock", "aws-prod"]
MOTO_SERVER_URL = "http://localhost:5000"


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Explicit keyword arguments
    2. Environment variables
    3. .env file (if exists)
    4. Default values in this class (lowest priority)

    Usage:
        from secure_files_api.config.settings import get_settings
        settings = get_settings()
        bucket_name = settings.s3_bucket_name
    """

    # Application Settings
    app_name: str = Field(
        default="secure-files-api",
        description="Application name"
    )

    # Deployment Mode
    deployment_mode: str = Field(
        default="local-dev",
        description="Deployment mode: local-dev, aws-mock, or aws-prod"
    )

    # AWS Core Settings
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL"
    )

    # S3 Configuration
    s3_bucket_name: str = Field(
        description="S3 bucket holding the encrypted files"
    )

    # Encryption Configuration
    kms_key_id: Optional[str] = Field(
        default=None,
        description="KMS key id or alias used to wrap per-file data keys"
    )

    schema_table: str = Field(
        default="uploads",
        description="Logical table name bound to every envelope"
    )

    schema_column: str = Field(
        default="file",
        description="Logical column name bound to every envelope"
    )

    # Storage Configuration
    storage_dir: str = Field(
        default="storage",
        description="Local object storage directory (local-dev mode)"
    )

    output_dir: str = Field(
        default="uploads",
        description="Directory the decrypted files are written to"
    )

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("deployment_mode", mode="before")
    @classmethod
    def normalize_deployment_mode(cls, v):
        """Map legacy deployment mode names onto the current ones."""
        if v:
            mode_mapping = {
                "local-mock": "local-dev",
                "cloud": "aws-prod",
            }
            return mode_mapping.get(v, v)
        return v

    @field_validator("deployment_mode")
    @classmethod
    def validate_deployment_mode(cls, v):
        """Validate deployment mode is one of the allowed values."""
        if v not in VALID_MODES:
            raise ValueError(f"Invalid deployment_mode: {v}. Must be one of {VALID_MODES}")
        return v

    @field_validator("s3_bucket_name")
    @classmethod
    def validate_bucket_name(cls, v):
        if not v or not v.strip():
            raise ValueError("s3_bucket_name must not be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper()

    @model_validator(mode="after")
    def apply_local_mode_defaults(self) -> Self:
        """Point local modes at the moto server with mock credentials unless told otherwise."""
        if self.deployment_mode in LOCAL_MODES:
            if self.aws_endpoint_url is None:
                self.aws_endpoint_url = MOTO_SERVER_URL
            if self.aws_access_key_id is None:
                self.aws_access_key_id = "mock"
            if self.aws_secret_access_key is None:
                self.aws_secret_access_key = "mock"
        return self

    @property
    def uses_local_storage(self) -> bool:
        return self.deployment_mode == "local-dev"

    def get_environment_dict(self) -> dict:
        """Get configuration as a dictionary suitable for docker-compose or subprocess.

        Returns:
            Dictionary of environment variables
        """
        env_dict = {
            "DEPLOYMENT_MODE": self.deployment_mode,
            "S3_BUCKET_NAME": self.s3_bucket_name,
            "KMS_KEY_ID": self.kms_key_id or "",
            "SCHEMA_TABLE": self.schema_table,
            "SCHEMA_COLUMN": self.schema_column,
            "AWS_DEFAULT_REGION": self.aws_region,
            "STORAGE_DIR": self.storage_dir,
            "OUTPUT_DIR": self.output_dir,
            "LOG_LEVEL": self.log_level,
        }

        # Only include AWS credentials for local/mock modes
        if self.deployment_mode in LOCAL_MODES:
            env_dict.update({
                "AWS_ENDPOINT_URL": self.aws_endpoint_url or "",
                "AWS_ACCESS_KEY_ID": self.aws_access_key_id or "mock",
                "AWS_SECRET_ACCESS_KEY": self.aws_secret_access_key or "mock",
            })

        return env_dict

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
