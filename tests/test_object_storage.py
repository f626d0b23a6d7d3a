"""Object storage backends."""

import io

import pytest
from botocore.exceptions import ClientError

from shared.storage.object_storage import LocalObjectStorage, ObjectStorageError, S3ObjectStorage


@pytest.mark.asyncio
async def test_local_download(tmp_path):
    (tmp_path / "requests").mkdir()
    (tmp_path / "requests" / "a.pdf").write_bytes(b"%PDF-1.7")

    data = await LocalObjectStorage(tmp_path).download("requests/a.pdf")

    assert data == b"%PDF-1.7"


@pytest.mark.asyncio
async def test_local_missing_object(tmp_path):
    with pytest.raises(ObjectStorageError, match="not found"):
        await LocalObjectStorage(tmp_path).download("requests/missing.pdf")


@pytest.mark.asyncio
async def test_local_rejects_path_escape(tmp_path):
    root = tmp_path / "uploads"
    root.mkdir()
    (tmp_path / "secret.txt").write_text("x")

    with pytest.raises(ObjectStorageError, match="escapes"):
        await LocalObjectStorage(root).download("../secret.txt")


class FakeS3Client:
    def __init__(self, objects):
        self.objects = objects

    def get_object(self, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        return {"Body": io.BytesIO(self.objects[Key])}


@pytest.mark.asyncio
async def test_s3_download_strips_leading_slash():
    storage = S3ObjectStorage("uploads", client=FakeS3Client({"requests/a.pdf": b"data"}))
    assert await storage.download("/requests/a.pdf") == b"data"


@pytest.mark.asyncio
async def test_s3_client_error_is_wrapped():
    storage = S3ObjectStorage("uploads", client=FakeS3Client({}))
    with pytest.raises(ObjectStorageError, match="NoSuchKey"):
        await storage.download("requests/a.pdf")
