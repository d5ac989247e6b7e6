"""Cultivar catalog routes — reads, audited edits, status changes, images, reviews."""

from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from catalog.auth.dependencies import get_optional_actor, require_role
from catalog.auth.models import User
from catalog.models.enums import CultivarStatusEnum, UserRoleEnum
from catalog.schemas.cultivar import (
	BulkStatusResult,
	BulkStatusUpdate,
	Cultivar,
	CultivarCreate,
	CultivarImage,
	CultivarListRead,
	CultivarSubmission,
	CultivarUpdate,
	StatusUpdate,
)
from catalog.schemas.review import GeneratedReview, Review, ReviewCreate, ReviewGenerateRequest
from catalog.services.cultivar_service import CultivarService
from catalog.services.history import Actor
from catalog.services.review_service import ReviewGenerator, get_review_generator
from catalog.services.status_service import StatusService
from catalog.storage import ObjectStorage, get_storage
from catalog.store import DocumentStore, StoreError, get_store

router = APIRouter(prefix="/cultivars", tags=["cultivars"])

_editor = require_role(UserRoleEnum.admin, UserRoleEnum.editor)


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, StoreError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Cultivar store unavailable")
	if isinstance(exc, httpx.HTTPError):
		return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Review generation unavailable")
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail="Unexpected cultivar service failure",
	)


@router.get("", response_model=CultivarListRead)
async def list_cultivars(
	status_filter: CultivarStatusEnum | None = Query(default=None, alias="status"),
	store: DocumentStore = Depends(get_store),
) -> CultivarListRead:
	service = CultivarService(store)
	try:
		cultivars = await service.list_cultivars(status=status_filter)
	except Exception as exc:
		raise _map_error(exc) from exc
	return CultivarListRead(items=cultivars)


@router.get("/{cultivar_id}", response_model=Cultivar)
async def get_cultivar(
	cultivar_id: str,
	store: DocumentStore = Depends(get_store),
) -> Cultivar:
	service = CultivarService(store)
	try:
		cultivar = await service.require_cultivar(cultivar_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return cultivar


@router.post("", response_model=Cultivar, status_code=status.HTTP_201_CREATED)
async def create_cultivar(
	payload: CultivarCreate,
	store: DocumentStore = Depends(get_store),
	user: User = Depends(_editor),
) -> Cultivar:
	service = CultivarService(store)
	try:
		cultivar = await service.create_cultivar(payload, Actor.from_user(user))
	except Exception as exc:
		raise _map_error(exc) from exc
	return cultivar


@router.post("/submissions", response_model=Cultivar, status_code=status.HTTP_201_CREATED)
async def submit_cultivar(
	payload: CultivarSubmission,
	store: DocumentStore = Depends(get_store),
	actor: Actor | None = Depends(get_optional_actor),
) -> Cultivar:
	service = CultivarService(store)
	try:
		cultivar = await service.submit_cultivar(payload, actor)
	except Exception as exc:
		raise _map_error(exc) from exc
	return cultivar


@router.post("/status", response_model=BulkStatusResult)
async def set_status_bulk(
	payload: BulkStatusUpdate,
	store: DocumentStore = Depends(get_store),
	user: User = Depends(_editor),
) -> BulkStatusResult:
	service = StatusService(store)
	try:
		updated = await service.set_status_bulk(payload.ids, payload.status, Actor.from_user(user))
	except Exception as exc:
		raise _map_error(exc) from exc
	return BulkStatusResult(status=payload.status, updated_ids=updated)


@router.patch("/{cultivar_id}", response_model=Cultivar)
async def update_cultivar(
	cultivar_id: str,
	payload: CultivarUpdate,
	store: DocumentStore = Depends(get_store),
	user: User = Depends(_editor),
) -> Cultivar:
	service = CultivarService(store)
	try:
		cultivar = await service.update_cultivar(cultivar_id, payload.to_changes(), Actor.from_user(user))
	except Exception as exc:
		raise _map_error(exc) from exc
	return cultivar


@router.post("/{cultivar_id}/status", response_model=Cultivar)
async def set_status(
	cultivar_id: str,
	payload: StatusUpdate,
	store: DocumentStore = Depends(get_store),
	user: User = Depends(_editor),
) -> Cultivar:
	status_service = StatusService(store)
	try:
		await status_service.set_status(cultivar_id, payload.status, Actor.from_user(user))
		cultivar = await CultivarService(store).require_cultivar(cultivar_id)
	except Exception as exc:
		raise _map_error(exc) from exc
	return cultivar


@router.post("/{cultivar_id}/images", response_model=CultivarImage, status_code=status.HTTP_201_CREATED)
async def upload_image(
	cultivar_id: str,
	file: UploadFile = File(...),
	alt: str | None = Form(default=None),
	ai_hint: str | None = Form(default=None, alias="data-ai-hint"),
	store: DocumentStore = Depends(get_store),
	storage: ObjectStorage = Depends(get_storage),
	user: User = Depends(_editor),
) -> CultivarImage:
	service = CultivarService(store, storage=storage)
	content = await file.read()
	try:
		image = await service.add_image(
			cultivar_id,
			filename=file.filename or "image",
			content=content,
			content_type=file.content_type,
			actor=Actor.from_user(user),
			alt=alt,
			ai_hint=ai_hint,
		)
	except Exception as exc:
		raise _map_error(exc) from exc
	return image


@router.delete("/{cultivar_id}/images/{image_id}", response_model=Cultivar)
async def delete_image(
	cultivar_id: str,
	image_id: str,
	store: DocumentStore = Depends(get_store),
	storage: ObjectStorage = Depends(get_storage),
	user: User = Depends(_editor),
) -> Cultivar:
	service = CultivarService(store, storage=storage)
	try:
		cultivar = await service.remove_image(cultivar_id, image_id, Actor.from_user(user))
	except Exception as exc:
		raise _map_error(exc) from exc
	return cultivar


@router.post("/{cultivar_id}/reviews/generate", response_model=GeneratedReview)
async def generate_review(
	cultivar_id: str,
	payload: ReviewGenerateRequest,
	store: DocumentStore = Depends(get_store),
	generator: ReviewGenerator = Depends(get_review_generator),
) -> GeneratedReview:
	service = CultivarService(store, review_generator=generator)
	try:
		generated = await service.generate_review(cultivar_id, payload.experience_text)
	except Exception as exc:
		raise _map_error(exc) from exc
	return generated


@router.post("/{cultivar_id}/reviews", response_model=Review, status_code=status.HTTP_201_CREATED)
async def add_review(
	cultivar_id: str,
	payload: ReviewCreate,
	store: DocumentStore = Depends(get_store),
	actor: Actor | None = Depends(get_optional_actor),
) -> Review:
	service = CultivarService(store)
	try:
		review = await service.add_review(cultivar_id, payload, actor)
	except Exception as exc:
		raise _map_error(exc) from exc
	return review
