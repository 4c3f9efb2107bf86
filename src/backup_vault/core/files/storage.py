"""Object storage backends for backed-up files.

Supports two backends:
- Local filesystem (development, tests, mounted volumes)
- S3-compatible (AWS S3, IBM Cloud Object Storage, MinIO, Ceph, etc.)

Every backend talks to exactly one bucket or directory fixed at construction.
There is no retry or backoff: each call either fully succeeds or raises.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import aioboto3
import aiofiles
import aiofiles.os
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from backup_vault.config import (
    FileStorageBackendConfig,
    LocalFileStorageConfig,
    S3FileStorageConfig,
)
from backup_vault.exceptions import (
    InvalidObjectKeyError,
    ObjectNotFoundError,
    StorageError,
    ValidationError,
)
from backup_vault.observability.logging import get_logger

logger = get_logger(__name__)

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


class ObjectMetadata(BaseModel):
    """Metadata for a stored object."""

    key: str
    size: int
    etag: str | None = None


class ObjectStorage(ABC):
    """Abstract base class for object storage backends.

    Provides the four gateway operations (upload, download, list, delete)
    over a single statically configured bucket.
    """

    backend_type: str = "abstract"

    def __init__(self, max_file_size_bytes: int | None = None):
        self._max_file_size = max_file_size_bytes

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the storage backend (create directories, sessions, etc.)."""
        ...

    @abstractmethod
    async def put(self, key: str, content: bytes) -> ObjectMetadata:
        """Store an object, overwriting any existing object under ``key``.

        Args:
            key: Object key (the uploaded file's original name)
            content: Object content as bytes

        Returns:
            ObjectMetadata for the stored object

        Raises:
            StorageError: If the backend write fails
        """
        ...

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Retrieve the full object body.

        Raises:
            ObjectNotFoundError: If no object exists under ``key``
            StorageError: On transport or auth failures
        """
        ...

    @abstractmethod
    async def list_keys(self) -> list[str]:
        """List every key in the bucket, in backend order.

        An empty bucket yields an empty list.
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete an object. Deleting an absent key succeeds silently."""
        ...

    async def close(self) -> None:
        """Close any open connections."""
        pass

    def _check_size(self, content: bytes) -> None:
        if self._max_file_size is not None and len(content) > self._max_file_size:
            raise ValidationError(
                f"Content size ({len(content)}) exceeds maximum ({self._max_file_size})",
                {"size": str(len(content)), "max_size": str(self._max_file_size)},
            )


class LocalObjectStorage(ObjectStorage):
    """Local filesystem object storage.

    Each key maps to a file below ``base_path``; keys containing ``/`` create
    nested directories. Keys resolving outside ``base_path`` are rejected.
    """

    backend_type = "local"

    def __init__(
        self,
        base_path: Path | str,
        max_file_size_bytes: int | None = None,
    ):
        super().__init__(max_file_size_bytes)
        self._base_path = Path(base_path).resolve()

    @property
    def base_path(self) -> Path:
        return self._base_path

    async def initialize(self) -> None:
        """Create base directory if it doesn't exist."""
        await aiofiles.os.makedirs(self._base_path, exist_ok=True)

    def _key_to_path(self, key: str) -> Path:
        """Convert object key to filesystem path.

        Only keys that ``list_keys`` would report back unchanged are accepted:
        no leading, trailing or doubled ``/`` and no ``.`` or ``..`` segments.
        """
        if any(segment in ("", ".", "..") for segment in key.split("/")):
            raise InvalidObjectKeyError(
                f"Object key cannot be stored verbatim: {key!r}", {"key": key}
            )
        path = (self._base_path / key).resolve()
        if path == self._base_path or not path.is_relative_to(self._base_path):
            raise InvalidObjectKeyError(
                f"Object key escapes storage root: {key}", {"key": key}
            )
        return path

    async def put(self, key: str, content: bytes) -> ObjectMetadata:
        self._check_size(content)
        file_path = self._key_to_path(key)

        try:
            await aiofiles.os.makedirs(file_path.parent, exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            raise StorageError(f"Failed to write object {key}: {e}", {"key": key}) from e

        return ObjectMetadata(key=key, size=len(content))

    async def get(self, key: str) -> bytes:
        file_path = self._key_to_path(key)
        if not await aiofiles.os.path.isfile(file_path):
            raise ObjectNotFoundError(key)

        try:
            async with aiofiles.open(file_path, "rb") as f:
                return await f.read()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(key) from e
        except OSError as e:
            raise StorageError(f"Failed to read object {key}: {e}", {"key": key}) from e

    async def list_keys(self) -> list[str]:
        if not await aiofiles.os.path.isdir(self._base_path):
            return []
        try:
            return await asyncio.to_thread(self._scan_keys)
        except OSError as e:
            raise StorageError(f"Failed to list objects: {e}") from e

    def _scan_keys(self) -> list[str]:
        return sorted(
            path.relative_to(self._base_path).as_posix()
            for path in self._base_path.rglob("*")
            if path.is_file()
        )

    async def delete(self, key: str) -> None:
        file_path = self._key_to_path(key)
        if not await aiofiles.os.path.isfile(file_path):
            return

        try:
            await aiofiles.os.remove(file_path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"Failed to delete object {key}: {e}", {"key": key}) from e

        # Clean up empty parent directories
        await self._cleanup_empty_dirs(file_path.parent)

    async def _cleanup_empty_dirs(self, path: Path) -> None:
        """Remove empty directories up to base_path."""
        while path != self._base_path:
            try:
                await aiofiles.os.rmdir(path)
                path = path.parent
            except OSError:
                break


class S3ObjectStorage(ObjectStorage):
    """S3-compatible object storage.

    Works with AWS S3, IBM Cloud Object Storage, MinIO, Ceph, etc.
    Credentials and endpoint come from configuration; when omitted, the
    standard AWS credential chain applies.
    """

    backend_type = "s3"

    def __init__(
        self,
        bucket: str,
        *,
        prefix: str = "",
        region: str | None = None,
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        max_file_size_bytes: int | None = None,
    ):
        super().__init__(max_file_size_bytes)
        self._bucket = bucket
        self._prefix = prefix.strip("/")
        self._region = region
        self._endpoint_url = endpoint_url
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._session: Any = None
        self._config: dict[str, Any] = {}

    @property
    def bucket(self) -> str:
        return self._bucket

    def _full_key(self, key: str) -> str:
        """Get full S3 key with prefix."""
        if self._prefix:
            return f"{self._prefix}/{key.lstrip('/')}"
        return key

    def _strip_prefix(self, full_key: str) -> str:
        if self._prefix and full_key.startswith(self._prefix + "/"):
            return full_key[len(self._prefix) + 1 :]
        return full_key

    async def initialize(self) -> None:
        """Initialize the aioboto3 session."""
        config: dict[str, Any] = {}
        if self._region:
            config["region_name"] = self._region
        if self._endpoint_url:
            config["endpoint_url"] = self._endpoint_url
        if self._access_key_id:
            config["aws_access_key_id"] = self._access_key_id
        if self._secret_access_key:
            config["aws_secret_access_key"] = self._secret_access_key

        self._session = aioboto3.Session()
        self._config = config
        logger.info(
            "S3 storage initialized",
            bucket=self._bucket,
            endpoint_url=self._endpoint_url,
        )

    async def _get_client(self):
        """Get S3 client context manager."""
        if self._session is None:
            await self.initialize()
        return self._session.client("s3", **self._config)

    async def put(self, key: str, content: bytes) -> ObjectMetadata:
        self._check_size(content)
        full_key = self._full_key(key)

        try:
            async with await self._get_client() as client:
                response = await client.put_object(
                    Bucket=self._bucket,
                    Key=full_key,
                    Body=content,
                )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload object {key}: {e}", {"key": key}) from e

        return ObjectMetadata(
            key=key,
            size=len(content),
            etag=response.get("ETag", "").strip('"') or None,
        )

    async def get(self, key: str) -> bytes:
        full_key = self._full_key(key)
        try:
            async with await self._get_client() as client:
                response = await client.get_object(Bucket=self._bucket, Key=full_key)
                async with response["Body"] as stream:
                    return await stream.read()
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
                raise ObjectNotFoundError(key) from e
            raise StorageError(f"Failed to download object {key}: {e}", {"key": key}) from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to download object {key}: {e}", {"key": key}) from e

    async def list_keys(self) -> list[str]:
        params: dict[str, Any] = {"Bucket": self._bucket}
        if self._prefix:
            params["Prefix"] = self._prefix + "/"

        keys: list[str] = []
        try:
            async with await self._get_client() as client:
                paginator = client.get_paginator("list_objects_v2")
                async for page in paginator.paginate(**params):
                    for item in page.get("Contents", []):
                        keys.append(self._strip_prefix(item["Key"]))
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to list objects: {e}") from e
        return keys

    async def delete(self, key: str) -> None:
        full_key = self._full_key(key)
        try:
            async with await self._get_client() as client:
                await client.delete_object(Bucket=self._bucket, Key=full_key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete object {key}: {e}", {"key": key}) from e


def create_object_storage(config: FileStorageBackendConfig) -> ObjectStorage:
    """Factory function to create object storage from config."""
    max_bytes = (
        config.max_file_size_mb * 1024 * 1024
        if config.max_file_size_mb is not None
        else None
    )
    match config:
        case LocalFileStorageConfig():
            return LocalObjectStorage(
                base_path=config.base_path,
                max_file_size_bytes=max_bytes,
            )
        case S3FileStorageConfig():
            return S3ObjectStorage(
                bucket=config.bucket,
                prefix=config.prefix,
                region=config.region,
                endpoint_url=config.endpoint_url,
                access_key_id=config.access_key_id,
                secret_access_key=config.secret_access_key,
                max_file_size_bytes=max_bytes,
            )
        case _:
            raise ValueError(f"Unknown storage backend type: {type(config)}")
