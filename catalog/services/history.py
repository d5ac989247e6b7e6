"""History log appender — builds audit entries and the atomic append payload.

Entry timestamps come from this process's wall clock at append time, while
``updatedAt`` is resolved by the store's clock.  The two can differ by the
clock skew between the API host and the database; entries are ordered by
their own timestamp in the audit log, never against ``updatedAt``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from catalog.schemas.history import HistoryEntry
from catalog.store import SERVER_TIMESTAMP, ArrayAppend

EVENT_CREATED_BY_ADMIN = "Cultivar Created by Admin"
EVENT_SUBMITTED_BY_USER = "Cultivar Submitted by User"
EVENT_DETAILS_UPDATED = "Cultivar Details Updated"
EVENT_REVIEW_ADDED = "Review Added"
EVENT_SEEDED = "Cultivar Seeded"

ANONYMOUS_SOURCE = "Anonymous or System"
SEED_MARKER = "system"


@dataclass(frozen=True, slots=True)
class Actor:
	"""Who performed a mutation; ``None`` in place of an Actor means anonymous."""

	user_id: str
	email: str | None = None
	display_name: str | None = None

	@classmethod
	def from_user(cls, user: Any) -> Actor:
		return cls(
			user_id=str(user.id),
			email=getattr(user, "email", None),
			display_name=getattr(user, "display_name", None),
		)


def status_changed_event(old: Any, new: Any) -> str:
	return f"Status changed from {old} to {new}"


def status_mass_changed_event(old: Any, new: Any) -> str:
	return f"Status mass-changed from {old} to {new}"


def actor_details(actor: Actor | None) -> dict[str, Any]:
	if actor is None:
		return {"userSource": ANONYMOUS_SOURCE}
	details: dict[str, Any] = {}
	if actor.email:
		details["userEmail"] = actor.email
	if actor.display_name:
		details["userName"] = actor.display_name
	return details


def build_history_entry(
	event: str,
	actor: Actor | None,
	details: Mapping[str, Any] | None = None,
	now: datetime | None = None,
) -> HistoryEntry:
	if not isinstance(event, str) or not event.strip():
		raise ValueError("history entries require a non-empty event label")
	merged = actor_details(actor)
	if details:
		merged.update(details)
	return HistoryEntry(
		timestamp=(now or datetime.now(UTC)).isoformat(),
		event=event,
		user_id=actor.user_id if actor is not None else None,
		details=merged,
	)


def update_event(
	current_status: Any,
	changes: Mapping[str, Any],
	updated_fields: list[str],
) -> tuple[str, dict[str, Any]]:
	"""Pick the event label and detail payload for an edit of an existing cultivar."""
	details: dict[str, Any] = {}
	if updated_fields:
		details["updatedFields"] = list(updated_fields)

	new_status = changes.get("status")
	if new_status is not None and str(new_status) != str(current_status):
		details["statusChange"] = {"old": str(current_status), "new": str(new_status)}
		return status_changed_event(current_status, new_status), details
	return EVENT_DETAILS_UPDATED, details


def entry_record(entry: HistoryEntry) -> dict[str, Any]:
	"""Persisted form; ``userId`` is omitted for anonymous actors."""
	return entry.model_dump(by_alias=True, mode="json", exclude_none=True)


def with_history(partial: Mapping[str, Any], entry: HistoryEntry, **appends: Any) -> dict[str, Any]:
	"""Extend a partial update with the server timestamp and the history append.

	Extra keyword arguments are further array appends written in the same
	update, e.g. ``reviews=review_record``.
	"""
	payload = dict(partial)
	payload["updatedAt"] = SERVER_TIMESTAMP
	payload["history"] = ArrayAppend(entry_record(entry))
	for field_name, item in appends.items():
		payload[field_name] = ArrayAppend(item)
	return payload
