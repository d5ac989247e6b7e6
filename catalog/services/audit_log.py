"""Audit log reader — flattens per-cultivar history into one filterable view."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time

from catalog.schemas.cultivar import Cultivar
from catalog.schemas.history import DisplayLogEntry, HistoryEntry, LogPage
from catalog.services.history import SEED_MARKER
from catalog.services.mapper import parse_timestamp

EVENT_TYPE_OPTIONS: tuple[str, ...] = (
	"Cultivar Created",
	"Cultivar Submitted by User",
	"Cultivar Details Updated",
	"Status changed",
	"Status mass-changed",
	"Review Added",
	"Cultivar Seeded",
)

SEED_DISPLAY = "System (Seed)"
UNKNOWN_DISPLAY = "System/Unknown"


@dataclass(slots=True)
class LogFilter:
	cultivar_name: str = ""
	user: str = ""
	event_types: list[str] = field(default_factory=list)
	date_from: date | None = None
	date_to: date | None = None


def resolve_user_display(entry: HistoryEntry) -> str:
	details = entry.details or {}
	if details.get("seededBy") == SEED_MARKER:
		return SEED_DISPLAY
	if entry.user_id:
		return str(details.get("userEmail") or details.get("userName") or entry.user_id)
	if details.get("userSource"):
		return str(details["userSource"])
	return UNKNOWN_DISPLAY


def has_event(entry: HistoryEntry) -> bool:
	return isinstance(entry.event, str) and bool(entry.event.strip())


def flatten_logs(cultivars: Iterable[Cultivar]) -> list[DisplayLogEntry]:
	logs: list[DisplayLogEntry] = []
	for cultivar in cultivars:
		for entry in cultivar.history:
			logs.append(
				DisplayLogEntry(
					timestamp=entry.timestamp,
					event=entry.event,
					user_id=entry.user_id,
					details=dict(entry.details),
					cultivar_id=cultivar.id,
					cultivar_name=cultivar.name,
					user_display=resolve_user_display(entry),
				)
			)
	return logs


def matches(entry: DisplayLogEntry, filters: LogFilter) -> bool:
	if not has_event(entry):
		return False
	logged_at = parse_timestamp(entry.timestamp)
	if logged_at is None:
		return False

	if filters.cultivar_name and filters.cultivar_name.lower() not in entry.cultivar_name.lower():
		return False

	if filters.user:
		needle = filters.user.lower()
		in_display = needle in entry.user_display.lower()
		in_user_id = bool(entry.user_id) and needle in entry.user_id.lower()
		if not (in_display or in_user_id):
			return False

	if filters.event_types and not any(label in entry.event for label in filters.event_types):
		return False

	if filters.date_from is not None and logged_at < _start_of_day(filters.date_from):
		return False
	if filters.date_to is not None and logged_at > _end_of_day(filters.date_to):
		return False
	return True


def filter_logs(entries: Iterable[DisplayLogEntry], filters: LogFilter | None = None) -> list[DisplayLogEntry]:
	"""Drop blank-event entries always; unparsable timestamps are dropped too."""
	active = filters or LogFilter()
	return [entry for entry in entries if matches(entry, active)]


def sort_logs(entries: Sequence[DisplayLogEntry], ascending: bool = False) -> list[DisplayLogEntry]:
	"""Stable sort by timestamp; unparsable timestamps sort as the oldest."""
	floor = datetime.min.replace(tzinfo=UTC)
	return sorted(
		entries,
		key=lambda entry: parse_timestamp(entry.timestamp) or floor,
		reverse=not ascending,
	)


def list_logs(
	cultivars: Iterable[Cultivar],
	filters: LogFilter | None = None,
	ascending: bool = False,
) -> list[DisplayLogEntry]:
	return sort_logs(filter_logs(flatten_logs(cultivars), filters), ascending=ascending)


def paginate(entries: Sequence[DisplayLogEntry], page: int, page_size: int) -> LogPage:
	"""1-based pages; a page outside the range yields no items."""
	size = max(1, page_size)
	total = len(entries)
	total_pages = math.ceil(total / size)
	items: list[DisplayLogEntry] = []
	if 1 <= page <= total_pages:
		start = (page - 1) * size
		items = list(entries[start:start + size])
	return LogPage(items=items, page=page, page_size=size, total=total, total_pages=total_pages)


def _start_of_day(day: date) -> datetime:
	return datetime.combine(day, time.min, tzinfo=UTC)


def _end_of_day(day: date) -> datetime:
	return datetime.combine(day, time.max, tzinfo=UTC)
