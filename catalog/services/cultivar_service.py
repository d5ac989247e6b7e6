"""Cultivar CRUD, reviews and images — every mutation carries its history entry."""

from __future__ import annotations

import re
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from catalog.config import get_settings
from catalog.models.enums import CultivarStatusEnum
from catalog.schemas.cultivar import (
	Cultivar,
	CultivarCreate,
	CultivarImage,
	CultivarSubmission,
)
from catalog.schemas.review import GeneratedReview, Review, ReviewCreate
from catalog.services.differ import DEFAULT_EXCLUDED_FIELDS, diff_fields
from catalog.services.history import (
	EVENT_CREATED_BY_ADMIN,
	EVENT_REVIEW_ADDED,
	EVENT_SUBMITTED_BY_USER,
	Actor,
	build_history_entry,
	entry_record,
	update_event,
	with_history,
)
from catalog.services.mapper import map_to_entity
from catalog.services.review_service import ReviewGenerator
from catalog.storage import ObjectStorage
from catalog.store import SERVER_TIMESTAMP, DocumentStore

logger = structlog.get_logger("catalog.cultivars")

USER_SUBMISSION_SOURCE = "User Submission"
IMAGE_PREFIX = "cultivar-images"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class CultivarService:
	"""Service for cultivar reads and audited writes against the document store."""

	def __init__(
		self,
		store: DocumentStore,
		storage: ObjectStorage | None = None,
		review_generator: ReviewGenerator | None = None,
		collection: str | None = None,
	):
		self.store = store
		self.storage = storage
		self.review_generator = review_generator
		self.settings = get_settings()
		self.collection = collection or self.settings.cultivars_collection

	# ── reads ──────────────────────────────────────────────────────────────

	async def list_cultivars(self, status: CultivarStatusEnum | None = None) -> list[Cultivar]:
		snapshots = await self.store.list(self.collection, order_by="name")
		cultivars = [map_to_entity(snap.data, snap.id) for snap in snapshots]
		if status is not None:
			cultivars = [cultivar for cultivar in cultivars if cultivar.status == status]
		return cultivars

	async def get_cultivar(self, cultivar_id: str) -> Cultivar | None:
		snapshot = await self.store.get(self.collection, cultivar_id)
		if snapshot is None:
			return None
		return map_to_entity(snapshot.data, snapshot.id)

	async def require_cultivar(self, cultivar_id: str) -> Cultivar:
		cultivar = await self.get_cultivar(cultivar_id)
		if cultivar is None:
			raise LookupError(f"Cultivar {cultivar_id} not found")
		return cultivar

	# ── creation ───────────────────────────────────────────────────────────

	async def create_cultivar(self, payload: CultivarCreate, actor: Actor | None) -> Cultivar:
		record = payload.model_dump(by_alias=True, mode="json")
		return await self._create(record, EVENT_CREATED_BY_ADMIN, actor)

	async def submit_cultivar(self, payload: CultivarSubmission, actor: Actor | None) -> Cultivar:
		record = payload.model_dump(by_alias=True, mode="json")
		record["status"] = CultivarStatusEnum.user_submitted.value
		record["source"] = USER_SUBMISSION_SOURCE
		return await self._create(record, EVENT_SUBMITTED_BY_USER, actor)

	async def _create(self, record: dict[str, Any], event: str, actor: Actor | None) -> Cultivar:
		entry = build_history_entry(event, actor, {"name": record.get("name")})
		document = dict(record)
		document.update(
			{
				"createdAt": SERVER_TIMESTAMP,
				"updatedAt": SERVER_TIMESTAMP,
				"reviews": [],
				"history": [entry_record(entry)],
			}
		)
		cultivar_id = await self.store.add(self.collection, document)
		logger.info("cultivar_created", cultivar_id=cultivar_id, history_event=event)
		return await self.require_cultivar(cultivar_id)

	# ── updates ────────────────────────────────────────────────────────────

	async def update_cultivar(
		self,
		cultivar_id: str,
		changes: Mapping[str, Any],
		actor: Actor | None,
	) -> Cultivar:
		"""Write ``changes`` (camelCase keys) with one history entry in the same update."""
		current = await self.require_cultivar(cultivar_id)
		current_record = current.to_record()
		writable = self._normalize_changes(
			cultivar_id,
			current_record,
			{key: value for key, value in changes.items() if key not in DEFAULT_EXCLUDED_FIELDS},
		)

		diff = diff_fields(current_record, writable)
		event, details = update_event(current.status, writable, diff.changed)
		entry = build_history_entry(event, actor, details)

		await self.store.update(self.collection, cultivar_id, with_history(writable, entry))
		logger.info("cultivar_updated", cultivar_id=cultivar_id, history_event=event, updated_fields=diff.changed)
		return await self.require_cultivar(cultivar_id)

	@staticmethod
	def _normalize_changes(
		cultivar_id: str,
		current_record: Mapping[str, Any],
		changes: Mapping[str, Any],
	) -> dict[str, Any]:
		"""Map incoming values into stored form; keys the entity does not know pass through."""
		proposed = map_to_entity({**current_record, **changes}, cultivar_id).to_record()
		return {key: proposed.get(key, value) for key, value in changes.items()}

	# ── reviews ────────────────────────────────────────────────────────────

	async def add_review(self, cultivar_id: str, payload: ReviewCreate, actor: Actor | None) -> Review:
		await self.require_cultivar(cultivar_id)
		review = Review(
			id=uuid.uuid4().hex,
			user=payload.user,
			rating=payload.rating,
			text=payload.text,
			sentiment_score=payload.sentiment_score,
			created_at=datetime.now(UTC).isoformat(),
		)
		entry = build_history_entry(
			EVENT_REVIEW_ADDED,
			actor,
			{"reviewId": review.id, "rating": review.rating, "reviewer": review.user},
		)
		await self.store.update(
			self.collection,
			cultivar_id,
			with_history({}, entry, reviews=review.model_dump(by_alias=True, mode="json")),
		)
		logger.info("review_added", cultivar_id=cultivar_id, review_id=review.id, rating=review.rating)
		return review

	async def generate_review(self, cultivar_id: str, experience_text: str) -> GeneratedReview:
		cultivar = await self.require_cultivar(cultivar_id)
		generator = self.review_generator or ReviewGenerator()
		return await generator.generate(cultivar.name, experience_text)

	# ── images ─────────────────────────────────────────────────────────────

	async def add_image(
		self,
		cultivar_id: str,
		*,
		filename: str,
		content: bytes,
		content_type: str | None,
		actor: Actor | None,
		alt: str | None = None,
		ai_hint: str | None = None,
	) -> CultivarImage:
		storage = self._require_storage()
		if not content:
			raise ValueError("uploaded image is empty")
		if len(content) > self.settings.max_upload_bytes:
			raise ValueError("uploaded image exceeds the size limit")
		if not content_type or not content_type.startswith("image/"):
			raise ValueError("only image uploads are accepted")

		current = await self.require_cultivar(cultivar_id)
		token = uuid.uuid4().hex
		safe_name = _UNSAFE_FILENAME_CHARS.sub("-", filename or "image").strip("-") or "image"
		url = await storage.upload(content, f"{IMAGE_PREFIX}/{cultivar_id}/{token}-{safe_name}", content_type)

		image = CultivarImage(id=f"img-{token[:12]}", url=url, alt=alt or current.name, ai_hint=ai_hint)
		images = [item.model_dump(by_alias=True, mode="json") for item in current.images]
		images.append(image.model_dump(by_alias=True, mode="json"))
		try:
			await self.update_cultivar(cultivar_id, {"images": images}, actor)
		except Exception:
			await storage.delete(url)
			raise
		return image

	async def remove_image(self, cultivar_id: str, image_id: str, actor: Actor | None) -> Cultivar:
		storage = self._require_storage()
		current = await self.require_cultivar(cultivar_id)
		target = next((image for image in current.images if image.id == image_id), None)
		if target is None:
			raise LookupError(f"Image {image_id} not found on cultivar {cultivar_id}")

		remaining = [
			image.model_dump(by_alias=True, mode="json") for image in current.images if image.id != image_id
		]
		updated = await self.update_cultivar(cultivar_id, {"images": remaining}, actor)
		await storage.delete(target.url)
		return updated

	def _require_storage(self) -> ObjectStorage:
		if self.storage is None:
			raise RuntimeError("object storage is not configured")
		return self.storage
