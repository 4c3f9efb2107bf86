"""Configuration settings for Backup Vault using provider-agnostic patterns."""

import os
import re
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BUCKET = "databackupandstoragesystem"

# -----------------------------------------------------------------------------
# Environment Variable Substitution
# -----------------------------------------------------------------------------

ENV_VAR_PATTERN = re.compile(r"\$\{env\.([A-Z_][A-Z0-9_]*)(?::=([^}]*))?\}")


def replace_env_vars(config: Any) -> Any:
    """Recursively replace ${env.VAR:=default} patterns in config."""
    if isinstance(config, dict):
        return {k: replace_env_vars(v) for k, v in config.items()}
    elif isinstance(config, list):
        return [replace_env_vars(v) for v in config]
    elif isinstance(config, str):

        def replacer(match: re.Match) -> str:
            var_name = match.group(1)
            default = match.group(2)
            value = os.environ.get(var_name)
            if value is not None:
                return value
            if default is not None:
                return default
            raise ValueError(f"Environment variable {var_name} is required but not set")

        return ENV_VAR_PATTERN.sub(replacer, config)
    return config


# -----------------------------------------------------------------------------
# File Storage Backend Configurations (Discriminated Union)
# -----------------------------------------------------------------------------


class LocalFileStorageConfig(BaseModel):
    """Local filesystem storage for files."""

    type: Literal["local"] = "local"
    base_path: Path = Field(
        default=Path("./file_storage"),
        description="Base path for file storage",
    )
    max_file_size_mb: int | None = Field(
        default=None,
        description="Maximum file size in MB (unlimited when unset)",
    )

    @classmethod
    def sample_config(cls) -> dict[str, Any]:
        return {
            "type": "local",
            "base_path": "${env.FILE_STORAGE_PATH:=./file_storage}",
        }


class S3FileStorageConfig(BaseModel):
    """S3-compatible storage for files (AWS S3, IBM COS, MinIO, ...)."""

    type: Literal["s3"] = "s3"
    bucket: str = Field(default=DEFAULT_BUCKET, description="Bucket name")
    prefix: str = Field(default="", description="Key prefix for all files")
    region: str | None = Field(default=None, description="Region name")
    endpoint_url: str | None = Field(
        default=None,
        description="Custom endpoint URL (IBM COS, MinIO, etc.)",
    )
    access_key_id: str | None = Field(default=None)
    secret_access_key: str | None = Field(default=None)
    max_file_size_mb: int | None = Field(default=None)

    @classmethod
    def sample_config(cls) -> dict[str, Any]:
        return {
            "type": "s3",
            "bucket": "${env.S3_BUCKET:=" + DEFAULT_BUCKET + "}",
            "prefix": "${env.S3_PREFIX:=}",
            "region": "${env.AWS_REGION:=us-south}",
            "endpoint_url": "${env.S3_ENDPOINT_URL:=https://s3.us-south.cloud-object-storage.appdomain.cloud}",
            "access_key_id": "${env.AWS_ACCESS_KEY_ID}",
            "secret_access_key": "${env.AWS_SECRET_ACCESS_KEY}",
        }


FileStorageBackendConfig = Annotated[
    LocalFileStorageConfig | S3FileStorageConfig,
    Field(discriminator="type"),
]


# -----------------------------------------------------------------------------
# Server / Logging Configuration
# -----------------------------------------------------------------------------


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    enable_metrics: bool = Field(default=True)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    enable_access_logs: bool = Field(default=True)


# -----------------------------------------------------------------------------
# Main Stack Configuration
# -----------------------------------------------------------------------------


class StackConfig(BaseModel):
    """Main configuration for the Backup Vault stack."""

    version: int = Field(default=1, description="Config schema version")

    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    storage: FileStorageBackendConfig = Field(
        default_factory=LocalFileStorageConfig,
        description="Object storage backend holding the backed-up files",
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StackConfig":
        """Create config from dict with environment variable substitution."""
        resolved = replace_env_vars(data)
        return cls.model_validate(resolved)

    @classmethod
    def sample_config(cls) -> dict[str, Any]:
        """Generate sample configuration for documentation."""
        return {
            "version": 1,
            "server": {
                "host": "0.0.0.0",
                "port": 5000,
            },
            "logging": {
                "level": "${env.LOG_LEVEL:=INFO}",
            },
            "storage": S3FileStorageConfig.sample_config(),
        }


# -----------------------------------------------------------------------------
# Settings (for simple environment-based config)
# -----------------------------------------------------------------------------


class Settings(BaseSettings):
    """Simple settings for environment-based configuration."""

    model_config = SettingsConfigDict(
        env_prefix="BACKUP_VAULT_",
        env_file=".env",
        case_sensitive=False,
    )

    # Config file path (if using YAML config)
    config_file: Path | None = Field(
        default=None,
        description="Path to YAML configuration file",
    )

    # Server settings (used if no config file)
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000)
    debug: bool = Field(default=False)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    enable_metrics: bool = Field(default=True)

    # Logging
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)

    # Storage
    storage_backend: Literal["local", "s3"] = Field(default="local")
    file_storage_path: Path = Field(default=Path("./file_storage"))
    s3_bucket: str = Field(default=DEFAULT_BUCKET)
    s3_prefix: str = Field(default="")
    s3_region: str | None = Field(default=None)
    s3_endpoint_url: str | None = Field(default=None)
    s3_access_key_id: str | None = Field(default=None)
    s3_secret_access_key: str | None = Field(default=None)
    max_file_size_mb: int | None = Field(default=None)

    def to_stack_config(self) -> StackConfig:
        """Convert simple settings to full StackConfig."""
        if self.storage_backend == "s3":
            storage: FileStorageBackendConfig = S3FileStorageConfig(
                bucket=self.s3_bucket,
                prefix=self.s3_prefix,
                region=self.s3_region,
                endpoint_url=self.s3_endpoint_url,
                access_key_id=self.s3_access_key_id,
                secret_access_key=self.s3_secret_access_key,
                max_file_size_mb=self.max_file_size_mb,
            )
        else:
            storage = LocalFileStorageConfig(
                base_path=self.file_storage_path,
                max_file_size_mb=self.max_file_size_mb,
            )

        return StackConfig(
            server=ServerConfig(
                host=self.host,
                port=self.port,
                cors_origins=self.cors_origins,
                enable_metrics=self.enable_metrics,
            ),
            logging=LoggingConfig(level=self.log_level, json_logs=self.json_logs),
            storage=storage,
        )


# Global settings instance
settings = Settings()
