"""Local filesystem object storage for development and offline demos."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from catalog.storage.base import ObjectStorage

logger = structlog.get_logger("catalog.storage.local")


class LocalObjectStorage(ObjectStorage):
	"""Writes objects below ``root`` and serves them from ``public_base_url``."""

	def __init__(self, root: str, public_base_url: str):
		self.root = Path(root)
		self.public_base_url = public_base_url.rstrip("/")

	async def upload(self, data: bytes, path: str, content_type: str | None = None) -> str:
		target = self._resolve(path)
		await asyncio.to_thread(self._write, target, data)
		logger.info("object_uploaded", path=path, size_bytes=len(data), content_type=content_type)
		return f"{self.public_base_url}/{path.lstrip('/')}"

	async def delete(self, url: str) -> None:
		prefix = f"{self.public_base_url}/"
		if not url.startswith(prefix):
			logger.warning("object_delete_foreign_url", url=url)
			return
		target = self._resolve(url[len(prefix):])
		try:
			await asyncio.to_thread(target.unlink)
		except FileNotFoundError:
			logger.warning("object_not_found_on_delete", url=url)
			return
		logger.info("object_deleted", url=url)

	def _resolve(self, path: str) -> Path:
		root = self.root.resolve()
		target = (root / path.lstrip("/")).resolve()
		if not target.is_relative_to(root):
			raise ValueError(f"Storage path escapes the storage root: {path}")
		return target

	@staticmethod
	def _write(target: Path, data: bytes) -> None:
		target.parent.mkdir(parents=True, exist_ok=True)
		target.write_bytes(data)
