"""Generic JSON document table backing the SQL document store.

Each row is one document of a named collection.  The whole record, including
its embedded ``history`` and ``reviews`` arrays, lives in the ``data`` JSONB
column so a single row update is the unit of atomic mutation.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from catalog.models.base import Base, TimestampMixin


class Document(Base, TimestampMixin):
    """One stored document; ``id`` is opaque and assigned by the store."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_collection", "collection"),
    )

    collection: Mapped[str] = mapped_column(String(100), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    def __repr__(self) -> str:
        return f"<Document collection={self.collection!r} id={self.id!r}>"
