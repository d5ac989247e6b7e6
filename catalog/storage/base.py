"""Object storage contract for cultivar images and attachment files."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ObjectStorage(ABC):
	"""Stores opaque blobs and hands back a public URL for each."""

	@abstractmethod
	async def upload(self, data: bytes, path: str, content_type: str | None = None) -> str:
		"""Store ``data`` under ``path`` and return its public URL."""

	@abstractmethod
	async def delete(self, url: str) -> None:
		"""Remove the object behind ``url``; a missing object is not an error."""
