"""Status transitions for one cultivar or a batch of them."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from catalog.config import get_settings
from catalog.models.enums import CultivarStatusEnum
from catalog.services.history import (
	Actor,
	build_history_entry,
	status_changed_event,
	status_mass_changed_event,
	with_history,
)
from catalog.services.mapper import map_to_entity
from catalog.store import DocumentStore

logger = structlog.get_logger("catalog.status")

BATCH_OPERATION = "batch update"


class StatusService:
	"""Any status may move to any other; no transition graph is enforced."""

	def __init__(self, store: DocumentStore, collection: str | None = None):
		self.store = store
		self.collection = collection or get_settings().cultivars_collection

	async def set_status(
		self,
		cultivar_id: str,
		new_status: CultivarStatusEnum,
		actor: Actor | None,
	) -> CultivarStatusEnum:
		"""Write ``new_status`` and return the status it replaced."""
		old_status = await self._current_status(cultivar_id)
		entry = build_history_entry(
			status_changed_event(old_status, new_status),
			actor,
			{"oldStatus": old_status.value, "newStatus": new_status.value},
		)
		await self.store.update(
			self.collection,
			cultivar_id,
			with_history({"status": new_status.value}, entry),
		)
		logger.info(
			"cultivar_status_changed",
			cultivar_id=cultivar_id,
			old_status=old_status.value,
			new_status=new_status.value,
		)
		return old_status

	async def set_status_bulk(
		self,
		cultivar_ids: Iterable[str],
		new_status: CultivarStatusEnum,
		actor: Actor | None,
	) -> list[str]:
		"""Apply ``new_status`` to every id in one atomic batch; returns the ids written."""
		ids = list(dict.fromkeys(cultivar_ids))
		if not ids:
			return []

		updates = []
		for cultivar_id in ids:
			old_status = await self._current_status(cultivar_id)
			entry = build_history_entry(
				status_mass_changed_event(old_status, new_status),
				actor,
				{
					"oldStatus": old_status.value,
					"newStatus": new_status.value,
					"operation": BATCH_OPERATION,
				},
			)
			updates.append((cultivar_id, with_history({"status": new_status.value}, entry)))

		await self.store.batch_update(self.collection, updates)
		logger.info("cultivar_status_mass_changed", count=len(ids), new_status=new_status.value)
		return ids

	async def _current_status(self, cultivar_id: str) -> CultivarStatusEnum:
		snapshot = await self.store.get(self.collection, cultivar_id)
		if snapshot is None:
			raise LookupError(f"Cultivar {cultivar_id} not found")
		return map_to_entity(snapshot.data, snapshot.id).status
