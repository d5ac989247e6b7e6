"""Document store contract, implementations and the FastAPI dependency."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.database import get_db
from catalog.store.base import (
	SERVER_TIMESTAMP,
	ArrayAppend,
	DocumentSnapshot,
	DocumentStore,
	StoreError,
	apply_partial,
)
from catalog.store.memory import MemoryDocumentStore
from catalog.store.sql import SqlDocumentStore


async def get_store(db: AsyncSession = Depends(get_db)) -> DocumentStore:
	return SqlDocumentStore(db)


__all__ = [
	"SERVER_TIMESTAMP",
	"ArrayAppend",
	"DocumentSnapshot",
	"DocumentStore",
	"MemoryDocumentStore",
	"SqlDocumentStore",
	"StoreError",
	"apply_partial",
	"get_store",
]
