"""S3-compatible object storage backed by boto3."""

from __future__ import annotations

import asyncio
from typing import Any
from urllib.parse import urlparse

import boto3
import structlog
from botocore.exceptions import ClientError

from catalog.storage.base import ObjectStorage

logger = structlog.get_logger("catalog.storage.s3")

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class S3ObjectStorage(ObjectStorage):
	"""Uploads to a single bucket; URLs are virtual-host style unless an endpoint is set."""

	def __init__(
		self,
		bucket: str,
		region: str | None = None,
		endpoint_url: str | None = None,
		client: Any | None = None,
	):
		if not bucket:
			raise ValueError("S3 storage requires a bucket name")
		self.bucket = bucket
		self.region = region
		self.endpoint_url = endpoint_url
		self._client = client

	@property
	def client(self) -> Any:
		if self._client is None:
			self._client = boto3.client("s3", region_name=self.region, endpoint_url=self.endpoint_url)
		return self._client

	def url_for(self, key: str) -> str:
		if self.endpoint_url:
			return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
		if self.region:
			return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"
		return f"https://{self.bucket}.s3.amazonaws.com/{key}"

	def key_for(self, url: str) -> str | None:
		parsed = urlparse(url)
		path = parsed.path.lstrip("/")
		if self.endpoint_url:
			prefix = f"{self.bucket}/"
			return path[len(prefix):] if path.startswith(prefix) else None
		if parsed.netloc.startswith(f"{self.bucket}.s3"):
			return path or None
		return None

	async def upload(self, data: bytes, path: str, content_type: str | None = None) -> str:
		key = path.lstrip("/")
		extra: dict[str, Any] = {}
		if content_type:
			extra["ContentType"] = content_type
		await asyncio.to_thread(self.client.put_object, Bucket=self.bucket, Key=key, Body=data, **extra)
		logger.info("object_uploaded", bucket=self.bucket, key=key, size_bytes=len(data))
		return self.url_for(key)

	async def delete(self, url: str) -> None:
		key = self.key_for(url)
		if key is None:
			logger.warning("object_delete_foreign_url", url=url)
			return
		try:
			await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=key)
		except ClientError as exc:
			if exc.response.get("Error", {}).get("Code") in _MISSING_CODES:
				logger.warning("object_not_found_on_delete", bucket=self.bucket, key=key)
				return
			logger.error("object_delete_failed", bucket=self.bucket, key=key, error=str(exc))
			raise
		await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=key)
		logger.info("object_deleted", bucket=self.bucket, key=key)
