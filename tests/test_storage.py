from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from botocore.exceptions import ClientError

from catalog.storage import LocalObjectStorage, S3ObjectStorage


class FakeS3Client:
    def __init__(self, missing: bool = False, error_code: str = "404") -> None:
        self.missing = missing
        self.error_code = error_code
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def put_object(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("put_object", kwargs))
        return {}

    def head_object(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("head_object", kwargs))
        if self.missing:
            raise ClientError({"Error": {"Code": self.error_code, "Message": "nope"}}, "HeadObject")
        return {}

    def delete_object(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(("delete_object", kwargs))
        return {}


@pytest.mark.asyncio
async def test_local_upload_and_delete(tmp_path: Path) -> None:
    storage = LocalObjectStorage(str(tmp_path), "http://cdn.test/files/")

    url = await storage.upload(b"data", "cultivar-images/c1/a.png", "image/png")

    assert url == "http://cdn.test/files/cultivar-images/c1/a.png"
    assert (tmp_path / "cultivar-images/c1/a.png").read_bytes() == b"data"

    await storage.delete(url)
    assert not (tmp_path / "cultivar-images/c1/a.png").exists()


@pytest.mark.asyncio
async def test_local_delete_missing_or_foreign_is_quiet(tmp_path: Path) -> None:
    storage = LocalObjectStorage(str(tmp_path), "http://cdn.test/files")

    await storage.delete("http://cdn.test/files/never/uploaded.png")
    await storage.delete("https://elsewhere.test/x.png")


@pytest.mark.asyncio
async def test_local_rejects_paths_outside_root(tmp_path: Path) -> None:
    storage = LocalObjectStorage(str(tmp_path / "root"), "http://cdn.test/files")

    with pytest.raises(ValueError):
        await storage.upload(b"x", "../escape.png")


@pytest.mark.asyncio
async def test_s3_upload_and_delete() -> None:
    client = FakeS3Client()
    storage = S3ObjectStorage("catalog-bucket", region="eu-west-1", client=client)

    url = await storage.upload(b"data", "cultivar-images/c1/a.png", "image/png")
    await storage.delete(url)

    assert url == "https://catalog-bucket.s3.eu-west-1.amazonaws.com/cultivar-images/c1/a.png"
    assert [name for name, _ in client.calls] == ["put_object", "head_object", "delete_object"]
    assert client.calls[0][1] == {
        "Bucket": "catalog-bucket",
        "Key": "cultivar-images/c1/a.png",
        "Body": b"data",
        "ContentType": "image/png",
    }


@pytest.mark.asyncio
async def test_s3_delete_missing_object_is_quiet() -> None:
    client = FakeS3Client(missing=True)
    storage = S3ObjectStorage("catalog-bucket", endpoint_url="http://minio:9000", client=client)

    await storage.delete("http://minio:9000/catalog-bucket/cultivar-images/c1/a.png")

    assert [name for name, _ in client.calls] == ["head_object"]


@pytest.mark.asyncio
async def test_s3_delete_other_errors_raise() -> None:
    client = FakeS3Client(missing=True, error_code="AccessDenied")
    storage = S3ObjectStorage("catalog-bucket", client=client)

    with pytest.raises(ClientError):
        await storage.delete("https://catalog-bucket.s3.amazonaws.com/a.png")


def test_s3_requires_bucket() -> None:
    with pytest.raises(ValueError):
        S3ObjectStorage("")
