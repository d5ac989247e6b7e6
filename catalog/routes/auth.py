"""Token issuance and current-user routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.auth.dependencies import authenticate_user, get_current_user
from catalog.auth.jwt import create_access_token, create_refresh_token
from catalog.auth.models import User
from catalog.database import get_db
from catalog.schemas.auth import CurrentUserRead, TokenRequest, TokenResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/token", response_model=TokenResponse)
async def issue_token(
	payload: TokenRequest,
	db: AsyncSession = Depends(get_db),
) -> TokenResponse:
	user = await authenticate_user(db, payload.email, payload.password)
	subject = str(user.id)
	return TokenResponse(
		access_token=create_access_token(subject, email=user.email),
		refresh_token=create_refresh_token(subject),
	)


@router.get("/me", response_model=CurrentUserRead)
async def read_current_user(user: User = Depends(get_current_user)) -> CurrentUserRead:
	return CurrentUserRead(
		id=user.id,
		email=user.email,
		display_name=user.display_name,
		role=user.role,
		can_edit=user.can_edit_catalog,
	)
