"""Tests for the S3-compatible storage backend with a mocked aioboto3 client."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from backup_vault.core.files.storage import S3ObjectStorage
from backup_vault.exceptions import ObjectNotFoundError, StorageError


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class FakePaginator:
    """Async paginator yielding preset pages."""

    def __init__(self, pages):
        self._pages = pages
        self.calls = []

    def paginate(self, **kwargs):
        self.calls.append(kwargs)
        return self._iterate()

    async def _iterate(self):
        for page in self._pages:
            yield page


@pytest.fixture
def mock_client():
    """Create a mock S3 client."""
    client = MagicMock()
    client.put_object = AsyncMock(return_value={"ETag": '"abc123"'})
    client.delete_object = AsyncMock(return_value={})
    client.get_object = AsyncMock()
    return client


@pytest.fixture
def storage(mock_client):
    """S3 storage whose session hands out the mock client."""
    backend = S3ObjectStorage(bucket="backups", region="us-south")

    client_context = MagicMock()
    client_context.__aenter__ = AsyncMock(return_value=mock_client)
    client_context.__aexit__ = AsyncMock(return_value=None)

    session = MagicMock()
    session.client.return_value = client_context
    backend._session = session
    return backend


def body_returning(content: bytes):
    stream = MagicMock()
    stream.read = AsyncMock(return_value=content)
    body = MagicMock()
    body.__aenter__ = AsyncMock(return_value=stream)
    body.__aexit__ = AsyncMock(return_value=None)
    return body


@pytest.mark.asyncio
async def test_initialize_builds_client_config():
    backend = S3ObjectStorage(
        bucket="backups",
        region="us-south",
        endpoint_url="https://s3.us-south.cloud-object-storage.appdomain.cloud",
        access_key_id="key",
        secret_access_key="secret",
    )

    await backend.initialize()

    assert backend._config == {
        "region_name": "us-south",
        "endpoint_url": "https://s3.us-south.cloud-object-storage.appdomain.cloud",
        "aws_access_key_id": "key",
        "aws_secret_access_key": "secret",
    }


@pytest.mark.asyncio
async def test_put_object(storage, mock_client):
    metadata = await storage.put("report.pdf", b"pdf bytes")

    mock_client.put_object.assert_called_once_with(
        Bucket="backups", Key="report.pdf", Body=b"pdf bytes"
    )
    assert metadata.size == 9
    assert metadata.etag == "abc123"


@pytest.mark.asyncio
async def test_put_with_prefix(mock_client, storage):
    storage._prefix = "team"

    await storage.put("report.pdf", b"x")

    assert mock_client.put_object.call_args.kwargs["Key"] == "team/report.pdf"


@pytest.mark.asyncio
async def test_put_failure_raises_storage_error(storage, mock_client):
    mock_client.put_object.side_effect = client_error("AccessDenied", "PutObject")

    with pytest.raises(StorageError):
        await storage.put("report.pdf", b"x")


@pytest.mark.asyncio
async def test_get_object(storage, mock_client):
    mock_client.get_object.return_value = {"Body": body_returning(b"hello")}

    assert await storage.get("hello.txt") == b"hello"
    mock_client.get_object.assert_called_once_with(Bucket="backups", Key="hello.txt")


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["NoSuchKey", "404"])
async def test_get_missing_raises_not_found(storage, mock_client, code):
    mock_client.get_object.side_effect = client_error(code, "GetObject")

    with pytest.raises(ObjectNotFoundError):
        await storage.get("missing.txt")


@pytest.mark.asyncio
async def test_get_transport_failure_raises_storage_error(storage, mock_client):
    mock_client.get_object.side_effect = EndpointConnectionError(
        endpoint_url="https://s3.example.invalid"
    )

    with pytest.raises(StorageError):
        await storage.get("hello.txt")


@pytest.mark.asyncio
async def test_get_access_denied_is_not_not_found(storage, mock_client):
    mock_client.get_object.side_effect = client_error("AccessDenied", "GetObject")

    with pytest.raises(StorageError) as exc_info:
        await storage.get("hello.txt")
    assert not isinstance(exc_info.value, ObjectNotFoundError)


@pytest.mark.asyncio
async def test_list_keys_follows_pages(storage, mock_client):
    paginator = FakePaginator(
        [
            {"Contents": [{"Key": "b.txt"}, {"Key": "a.txt"}]},
            {"Contents": [{"Key": "c.txt"}]},
        ]
    )
    mock_client.get_paginator.return_value = paginator

    keys = await storage.list_keys()

    assert keys == ["b.txt", "a.txt", "c.txt"]
    mock_client.get_paginator.assert_called_once_with("list_objects_v2")
    assert paginator.calls == [{"Bucket": "backups"}]


@pytest.mark.asyncio
async def test_list_empty_bucket(storage, mock_client):
    mock_client.get_paginator.return_value = FakePaginator([{"KeyCount": 0}])

    assert await storage.list_keys() == []


@pytest.mark.asyncio
async def test_list_strips_prefix(storage, mock_client):
    storage._prefix = "team"
    paginator = FakePaginator([{"Contents": [{"Key": "team/a.txt"}]}])
    mock_client.get_paginator.return_value = paginator

    assert await storage.list_keys() == ["a.txt"]
    assert paginator.calls == [{"Bucket": "backups", "Prefix": "team/"}]


@pytest.mark.asyncio
async def test_list_failure_raises_storage_error(storage, mock_client):
    mock_client.get_paginator.side_effect = client_error("NoSuchBucket", "ListObjectsV2")

    with pytest.raises(StorageError):
        await storage.list_keys()


@pytest.mark.asyncio
async def test_delete_object(storage, mock_client):
    await storage.delete("old.txt")

    mock_client.delete_object.assert_called_once_with(Bucket="backups", Key="old.txt")


@pytest.mark.asyncio
async def test_delete_failure_raises_storage_error(storage, mock_client):
    mock_client.delete_object.side_effect = client_error("AccessDenied", "DeleteObject")

    with pytest.raises(StorageError):
        await storage.delete("old.txt")
