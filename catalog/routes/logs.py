"""Audit log route — every cultivar's history, flattened, filtered and paged."""

from __future__ import annotations

from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status

from catalog.auth.dependencies import get_current_user
from catalog.auth.models import User
from catalog.config import get_settings
from catalog.schemas.history import LogPage
from catalog.services.audit_log import LogFilter, list_logs, paginate
from catalog.services.cultivar_service import CultivarService
from catalog.store import DocumentStore, StoreError, get_store

router = APIRouter(prefix="/logs", tags=["logs"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	if isinstance(exc, StoreError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Cultivar store unavailable")
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="audit log failure")


@router.get("", response_model=LogPage)
async def read_logs(
	cultivar_name: str = Query(default="", alias="cultivarName", max_length=200),
	user: str = Query(default="", max_length=320),
	event_types: list[str] | None = Query(default=None, alias="eventType"),
	date_from: date | None = Query(default=None, alias="dateFrom"),
	date_to: date | None = Query(default=None, alias="dateTo"),
	sort: Literal["asc", "desc"] = Query(default="desc"),
	page: int = Query(default=1, ge=1),
	page_size: int | None = Query(default=None, alias="pageSize", ge=1, le=200),
	store: DocumentStore = Depends(get_store),
	_user: User = Depends(get_current_user),
) -> LogPage:
	filters = LogFilter(
		cultivar_name=cultivar_name,
		user=user,
		event_types=event_types or [],
		date_from=date_from,
		date_to=date_to,
	)
	try:
		cultivars = await CultivarService(store).list_cultivars()
		entries = list_logs(cultivars, filters, ascending=sort == "asc")
	except Exception as exc:
		raise _map_error(exc) from exc
	return paginate(entries, page, page_size or get_settings().logs_page_size)
