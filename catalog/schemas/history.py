"""Schemas for embedded history entries and the flattened audit log view."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class HistoryEntry(BaseModel):
	"""One audit record embedded in a cultivar document.

	Read-side tolerant: legacy documents may carry entries without an event or
	with an unparsable timestamp; the audit log reader drops those.
	"""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

	timestamp: str | None = None
	event: str | None = None
	user_id: str | None = None
	details: dict[str, Any] = Field(default_factory=dict)


class DisplayLogEntry(HistoryEntry):
	cultivar_id: str
	cultivar_name: str
	user_display: str


class LogPage(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

	items: list[DisplayLogEntry]
	page: int
	page_size: int
	total: int
	total_pages: int
