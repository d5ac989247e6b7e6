"""Object storage backends and the settings-driven factory."""

from __future__ import annotations

from functools import lru_cache

from catalog.config import StorageBackend, get_settings
from catalog.storage.base import ObjectStorage
from catalog.storage.local import LocalObjectStorage
from catalog.storage.s3 import S3ObjectStorage


@lru_cache
def get_storage() -> ObjectStorage:
	"""Process-wide storage client built from settings (cached after first call)."""
	settings = get_settings()
	if settings.storage_backend == StorageBackend.s3:
		return S3ObjectStorage(
			bucket=settings.s3_bucket,
			region=settings.s3_region,
			endpoint_url=settings.s3_endpoint_url,
		)
	return LocalObjectStorage(settings.storage_local_root, settings.storage_public_base_url)


__all__ = ["LocalObjectStorage", "ObjectStorage", "S3ObjectStorage", "get_storage"]
