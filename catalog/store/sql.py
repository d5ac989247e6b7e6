"""PostgreSQL JSONB document store on top of the async SQLAlchemy session."""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.models.document import Document
from catalog.store.base import DocumentSnapshot, DocumentStore, StoreError, apply_partial

logger = structlog.get_logger("catalog.store.sql")


class SqlDocumentStore(DocumentStore):
	"""Documents live in the ``documents`` table, one row per document.

	Every write runs inside a SAVEPOINT with the target rows locked
	(``SELECT ... FOR UPDATE``), so an update and its array appends land
	together or not at all.  Server timestamps come from ``now()`` of the
	database and are stored as ISO-8601 strings inside the JSON payload.
	"""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def get(self, collection: str, doc_id: str) -> DocumentSnapshot | None:
		try:
			row = await self.db.execute(
				select(Document).where(Document.collection == collection, Document.id == doc_id)
			)
		except SQLAlchemyError as exc:
			raise self._store_error("get", collection, exc) from exc
		doc = row.scalar_one_or_none()
		if doc is None:
			return None
		return DocumentSnapshot(id=doc.id, data=dict(doc.data))

	async def list(self, collection: str, order_by: str | None = None) -> list[DocumentSnapshot]:
		stmt = select(Document).where(Document.collection == collection)
		if order_by is not None:
			stmt = stmt.order_by(Document.data[order_by].astext.asc().nulls_last())
		try:
			rows = await self.db.execute(stmt)
		except SQLAlchemyError as exc:
			raise self._store_error("list", collection, exc) from exc
		return [DocumentSnapshot(id=doc.id, data=dict(doc.data)) for doc in rows.scalars().all()]

	async def add(self, collection: str, record: Mapping[str, Any]) -> str:
		doc_id = uuid.uuid4().hex
		try:
			async with self.db.begin_nested():
				now = await self._server_now()
				self.db.add(Document(collection=collection, id=doc_id, data=apply_partial({}, record, now)))
				await self.db.flush()
		except SQLAlchemyError as exc:
			raise self._store_error("add", collection, exc) from exc
		return doc_id

	async def update(self, collection: str, doc_id: str, partial: Mapping[str, Any]) -> None:
		try:
			async with self.db.begin_nested():
				docs = await self._lock_rows(collection, [doc_id])
				now = await self._server_now()
				doc = docs[doc_id]
				doc.data = apply_partial(doc.data, partial, now)
				await self.db.flush()
		except SQLAlchemyError as exc:
			raise self._store_error("update", collection, exc) from exc

	async def batch_update(
		self,
		collection: str,
		updates: Sequence[tuple[str, Mapping[str, Any]]],
	) -> None:
		if not updates:
			return
		try:
			async with self.db.begin_nested():
				docs = await self._lock_rows(collection, [doc_id for doc_id, _ in updates])
				now = await self._server_now()
				for doc_id, partial in updates:
					doc = docs[doc_id]
					doc.data = apply_partial(doc.data, partial, now)
				await self.db.flush()
		except SQLAlchemyError as exc:
			raise self._store_error("batch_update", collection, exc) from exc

	async def _lock_rows(self, collection: str, doc_ids: list[str]) -> dict[str, Document]:
		rows = await self.db.execute(
			select(Document)
			.where(Document.collection == collection, Document.id.in_(doc_ids))
			.with_for_update()
		)
		docs = {doc.id: doc for doc in rows.scalars().all()}
		missing = [doc_id for doc_id in doc_ids if doc_id not in docs]
		if missing:
			raise LookupError(f"Documents not found in {collection}: {', '.join(missing)}")
		return docs

	async def _server_now(self) -> str:
		row = await self.db.execute(select(func.now()))
		return row.scalar_one().isoformat()

	@staticmethod
	def _store_error(operation: str, collection: str, exc: Exception) -> StoreError:
		logger.error("store_operation_failed", operation=operation, collection=collection, error=str(exc))
		return StoreError(f"{operation} on {collection} failed")
