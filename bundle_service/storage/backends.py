"""Object storage backends.

``S3ObjectStorage`` talks to any S3-compatible service (Cloudflare R2 in
production) through an injected boto3 client; blocking SDK calls run in
worker threads.  ``LocalObjectStorage`` keeps objects as files under a root
directory and is used for local development and tests.

Both return ``None`` for a missing key and raise ``StorageError`` for every
other failure.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import StorageBackend, StorageConfig
from ..errors import StorageError

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


class ObjectStorage(Protocol):
    """Minimal key/value blob contract used by ``ArtifactStore``."""

    async def put(self, key: str, body: bytes, content_type: str) -> None: ...

    async def get(self, key: str) -> bytes | None: ...


# ---------------------------------------------------------------------------
# S3 / R2
# ---------------------------------------------------------------------------


class S3ObjectStorage:
    """S3-compatible storage over a boto3 client.

    Args:
        client: A boto3 S3 client (or any object exposing ``put_object`` and
            ``get_object`` with the same signatures).
        bucket: Target bucket name.
    """

    def __init__(self, client: Any, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls, config: StorageConfig) -> "S3ObjectStorage":
        """Create a client for the endpoint and credentials in *config*."""
        client = boto3.client(
            "s3",
            endpoint_url=config.endpoint_url or None,
            region_name=config.region,
            aws_access_key_id=config.access_key_id or None,
            aws_secret_access_key=config.secret_access_key or None,
        )
        return cls(client, config.bucket)

    async def put(self, key: str, body: bytes, content_type: str) -> None:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error("Upload of %s failed: %s", key, code)
            raise StorageError(f"Failed to upload '{key}': {code}", key=key) from e
        except BotoCoreError as e:
            logger.error("Upload of %s failed: %s", key, e)
            raise StorageError(f"Failed to upload '{key}': {e}", key=key) from e

    async def get(self, key: str) -> bytes | None:
        try:
            response = await asyncio.to_thread(
                self.client.get_object, Bucket=self.bucket, Key=key
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            if code in _MISSING_CODES:
                return None
            logger.error("Fetch of %s failed: %s", key, code)
            raise StorageError(f"Failed to fetch '{key}': {code}", key=key) from e
        except BotoCoreError as e:
            logger.error("Fetch of %s failed: %s", key, e)
            raise StorageError(f"Failed to fetch '{key}': {e}", key=key) from e

        body = response.get("Body")
        if body is None:
            return None
        return await asyncio.to_thread(body.read)


# ---------------------------------------------------------------------------
# Local disk
# ---------------------------------------------------------------------------


class LocalObjectStorage:
    """Objects stored as files below *root*; keys map to relative paths."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        target = (self.root / key).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise StorageError(f"Key escapes storage root: {key!r}", key=key)
        return target

    async def put(self, key: str, body: bytes, content_type: str) -> None:
        target = self._path(key)
        try:
            await asyncio.to_thread(_write_bytes, target, body)
        except OSError as e:
            raise StorageError(f"Failed to write '{key}': {e}", key=key) from e

    async def get(self, key: str) -> bytes | None:
        target = self._path(key)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read '{key}': {e}", key=key) from e


def _write_bytes(path: Path, body: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_bytes(body)
    tmp.replace(path)


def create_storage(config: StorageConfig) -> ObjectStorage:
    """Build the storage backend selected by *config*."""
    if config.backend == StorageBackend.LOCAL:
        return LocalObjectStorage(config.local_dir)
    return S3ObjectStorage.from_config(config)
