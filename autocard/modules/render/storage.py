"""
Durable storage for rendered cards.

Backends return the public URL of what they stored. They raise
``StorageError`` on any failure; the output packager decides what happens
next.
"""

import asyncio
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import boto3
from botocore.config import Config as BotoConfig

from autocard.config import Settings
from autocard.shared.errors import StorageError
from autocard.shared.logging import get_logger

logger = get_logger(__name__)


class StorageBackend(ABC):
    """Abstract durable storage."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """
        Store ``data`` under ``key``.

        Returns:
            Public URL of the stored object

        Raises:
            StorageError: the write failed
        """


class LocalStorage(StorageBackend):
    """Write files under a directory served at ``public_base_url``."""

    def __init__(self, root: Path, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _safe_write(self, path: Path, content: bytes) -> Path:
        """
        Atomic write to file.
        Writes to a temp file in the same directory, then renames.
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".tmp_{path.name}_")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        return path

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        if not self.public_base_url:
            raise StorageError("storage_public_base_url is not configured")

        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root.resolve()):
            raise StorageError(f"Key escapes storage root: {key}")

        try:
            await asyncio.to_thread(self._safe_write, path, data)
        except OSError as e:
            raise StorageError(f"Local write failed for {key}: {e}") from e

        return f"{self.public_base_url}/{key}"


class S3Storage(StorageBackend):
    """S3 or S3-compatible (MinIO, R2) object storage via boto3."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: str | None = None,
        region: str = "us-east-1",
        access_key: str | None = None,
        secret_key: str | None = None,
        public_base_url: str = "",
        client=None,
    ):
        if not bucket:
            raise ValueError("S3 bucket is required")
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.region = region
        self.public_base_url = public_base_url.rstrip("/")
        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=BotoConfig(retries={"max_attempts": 2}, connect_timeout=5, read_timeout=15),
        )

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except Exception as e:
            raise StorageError(f"S3 upload failed for {self.bucket}/{key}: {e}") from e

        return self.public_url(key)


def build_storage(settings: Settings) -> StorageBackend | None:
    """Create the configured backend, or ``None`` when storage is disabled."""
    backend = settings.storage_backend

    if backend == "none":
        return None

    if backend == "local":
        return LocalStorage(settings.storage_dir, settings.storage_public_base_url)

    try:
        return S3Storage(
            bucket=settings.s3_bucket,
            endpoint_url=settings.s3_endpoint_url,
            region=settings.s3_region,
            access_key=settings.s3_access_key,
            secret_key=settings.s3_secret_key,
            public_base_url=settings.storage_public_base_url,
        )
    except Exception as e:
        logger.error(f"S3 storage unavailable, cards will be returned inline: {e}")
        return None
