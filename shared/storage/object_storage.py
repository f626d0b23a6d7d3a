"""
Object storage backends for uploaded source documents.

Documents are addressed by the ``storage_path`` recorded on their row.
Two backends are provided: a local filesystem root and an S3 bucket.
"""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shared.utils.config import settings
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)


class ObjectStorageError(Exception):
    """Raised when an object cannot be read from storage."""
    pass


class IObjectStorage(ABC):
    """Read access to stored document bytes."""

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """
        Download an object.

        Args:
            path: Storage path of the object

        Returns:
            Object bytes

        Raises:
            ObjectStorageError: If the object is missing or unreadable
        """
        pass


class LocalObjectStorage(IObjectStorage):
    """Objects stored under a local directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        resolved = (self.root / path.lstrip("/")).resolve()
        if self.root.resolve() not in resolved.parents and resolved != self.root.resolve():
            raise ObjectStorageError(f"Path escapes storage root: {path}")
        return resolved

    async def download(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise ObjectStorageError(f"Object not found: {path}")

        try:
            data = await asyncio.to_thread(target.read_bytes)
        except OSError as e:
            raise ObjectStorageError(f"Failed to read {path}: {e}")

        logger.debug(f"Read {len(data)} bytes from {target}")
        return data


class S3ObjectStorage(IObjectStorage):
    """Objects stored in an S3 bucket, keyed by storage path."""

    def __init__(self, bucket: str, region: Optional[str] = None, client=None):
        self.bucket = bucket
        self.client = client or boto3.client("s3", region_name=region)

    async def download(self, path: str) -> bytes:
        key = path.lstrip("/")

        def _get() -> bytes:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
            return response["Body"].read()

        try:
            data = await asyncio.to_thread(_get)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            raise ObjectStorageError(f"S3 get_object failed for {key} ({code})")
        except BotoCoreError as e:
            raise ObjectStorageError(f"S3 error for {key}: {e}")

        logger.debug(f"Downloaded s3://{self.bucket}/{key} ({len(data)} bytes)")
        return data


def get_object_storage() -> IObjectStorage:
    """
    Build the storage backend selected by STORAGE_BACKEND.

    Returns:
        IObjectStorage instance

    Raises:
        ValueError: If the S3 backend is selected without a bucket
    """
    if settings.STORAGE_BACKEND == "s3":
        if not settings.STORAGE_S3_BUCKET:
            raise ValueError("STORAGE_S3_BUCKET must be set for the s3 storage backend")
        return S3ObjectStorage(settings.STORAGE_S3_BUCKET, region=settings.AWS_REGION)

    return LocalObjectStorage(settings.STORAGE_LOCAL_ROOT)
