"""In-process document store for local runs, seeding dry-runs and tests."""

from __future__ import annotations

import asyncio
import copy
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

import structlog

from catalog.store.base import DocumentSnapshot, DocumentStore, StoreError, apply_partial

logger = structlog.get_logger("catalog.store.memory")

CommitHook = Callable[[str, dict[str, dict[str, Any]]], None]


class MemoryDocumentStore(DocumentStore):
	"""Holds documents in a per-instance dict.

	Writes are prepared on copies and swapped in under a lock, so a failure
	while preparing (or raised by ``before_commit``) leaves every document
	untouched.  ``before_commit`` receives the collection and the documents
	about to be written.
	"""

	def __init__(
		self,
		*,
		before_commit: CommitHook | None = None,
		clock: Callable[[], datetime] | None = None,
	) -> None:
		self._collections: dict[str, dict[str, dict[str, Any]]] = {}
		self._lock = asyncio.Lock()
		self.before_commit = before_commit
		self._clock = clock or (lambda: datetime.now(UTC))

	async def get(self, collection: str, doc_id: str) -> DocumentSnapshot | None:
		data = self._collections.get(collection, {}).get(doc_id)
		if data is None:
			return None
		return DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))

	async def list(self, collection: str, order_by: str | None = None) -> list[DocumentSnapshot]:
		docs = [
			DocumentSnapshot(id=doc_id, data=copy.deepcopy(data))
			for doc_id, data in self._collections.get(collection, {}).items()
		]
		if order_by is not None:
			docs.sort(key=lambda snap: _order_key(snap.data.get(order_by)))
		return docs

	async def add(self, collection: str, record: Mapping[str, Any]) -> str:
		doc_id = uuid.uuid4().hex
		async with self._lock:
			data = apply_partial({}, record, self._clock())
			self._commit(collection, {doc_id: data})
		return doc_id

	async def update(self, collection: str, doc_id: str, partial: Mapping[str, Any]) -> None:
		async with self._lock:
			current = self._collections.get(collection, {}).get(doc_id)
			if current is None:
				raise LookupError(f"Document {collection}/{doc_id} not found")
			data = apply_partial(current, partial, self._clock())
			self._commit(collection, {doc_id: data})

	async def batch_update(
		self,
		collection: str,
		updates: Sequence[tuple[str, Mapping[str, Any]]],
	) -> None:
		if not updates:
			return
		async with self._lock:
			docs = self._collections.get(collection, {})
			now = self._clock()
			staged: dict[str, dict[str, Any]] = {}
			for doc_id, partial in updates:
				current = staged.get(doc_id, docs.get(doc_id))
				if current is None:
					raise LookupError(f"Document {collection}/{doc_id} not found")
				staged[doc_id] = apply_partial(current, partial, now)
			self._commit(collection, staged)

	def _commit(self, collection: str, staged: dict[str, dict[str, Any]]) -> None:
		if self.before_commit is not None:
			try:
				self.before_commit(collection, staged)
			except StoreError:
				logger.warning("store_write_rejected", collection=collection, doc_ids=list(staged))
				raise
		self._collections.setdefault(collection, {}).update(staged)


def _order_key(value: Any) -> tuple[bool, str]:
	return (value is None, "" if value is None else str(value))
