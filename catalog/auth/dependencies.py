"""Authentication dependencies — current user, optional actor, role checks."""

from __future__ import annotations

import hashlib
import hmac
import re
import uuid
from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.auth.jwt import AuthError, decode_token
from catalog.auth.models import APIKey, User
from catalog.config import get_settings
from catalog.database import get_db
from catalog.models.enums import UserRoleEnum
from catalog.services.history import Actor

bearer_scheme = HTTPBearer(auto_error=False)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

_CULTIVAR_PATH = re.compile(r"/api/v1/cultivars/([A-Za-z0-9_-]{1,64})(?:/|$)")
_NON_ID_SEGMENTS = {"status", "submissions"}


def _raise_auth(exc: AuthError) -> HTTPException:
	return HTTPException(
		status_code=exc.status_code,
		detail={"error": exc.code, "message": exc.detail},
	)


def _api_key_digest(plaintext: str) -> str:
	return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def _api_key_matches(plaintext: str, digest: str, stored_hash: str) -> bool:
	if hmac.compare_digest(digest, stored_hash):
		return True
	try:
		return pwd_context.verify(plaintext, stored_hash)
	except ValueError:
		return False


def hash_password(password: str) -> str:
	return pwd_context.hash(password)


def extract_request_cultivar_id(request: Request) -> str | None:
	token = request.path_params.get("cultivar_id")
	if token:
		return str(token)
	match = _CULTIVAR_PATH.search(request.url.path)
	if match is None or match.group(1) in _NON_ID_SEGMENTS:
		return None
	return match.group(1)


def extract_identity_hint(request: Request) -> str:
	settings = get_settings()
	api_key_header = request.headers.get(settings.api_key_header_name)
	auth_header = request.headers.get("authorization", "")
	if api_key_header:
		return "api_key"
	if auth_header.lower().startswith("bearer "):
		return "jwt"
	return "anonymous"


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
	row = await db.execute(select(User).where(User.email == email.strip().lower()))
	user = row.scalar_one_or_none()
	if user is None or not user.is_active:
		raise _raise_auth(AuthError(code="credentials_invalid", detail="Invalid email or password"))
	try:
		verified = pwd_context.verify(password, user.hashed_password)
	except ValueError:
		verified = False
	if not verified:
		raise _raise_auth(AuthError(code="credentials_invalid", detail="Invalid email or password"))
	return user


async def _resolve_user_from_token(db: AsyncSession, credentials: HTTPAuthorizationCredentials) -> User:
	try:
		claims = decode_token(credentials.credentials, expected_type="access")
	except AuthError as exc:
		raise _raise_auth(exc) from exc
	try:
		user_id = uuid.UUID(claims.subject)
	except ValueError as exc:
		raise _raise_auth(AuthError(code="token_invalid", detail="Token subject is invalid")) from exc

	row = await db.execute(select(User).where(User.id == user_id))
	user = row.scalar_one_or_none()
	if user is None or not user.is_active:
		raise _raise_auth(AuthError(code="user_invalid", detail="User is not active"))
	return user


async def _resolve_user_from_api_key(db: AsyncSession, plaintext_key: str) -> User:
	digest = _api_key_digest(plaintext_key)
	rows = await db.execute(select(APIKey).where(APIKey.is_active.is_(True)))
	for api_key in rows.scalars().all():
		if not _api_key_matches(plaintext_key, digest, api_key.key_hash):
			continue
		if api_key.is_expired():
			raise _raise_auth(AuthError(code="api_key_expired", detail="API key expired"))
		owner = await db.execute(select(User).where(User.id == api_key.user_id))
		user = owner.scalar_one_or_none()
		if user is None or not user.is_active:
			raise _raise_auth(AuthError(code="user_invalid", detail="API key owner is inactive"))
		return user
	raise _raise_auth(AuthError(code="api_key_invalid", detail="Invalid API key"))


async def get_optional_user(
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> User | None:
	"""Resolve the caller if they sent credentials; anonymous callers get ``None``.

	Credentials that are present but invalid are still rejected.
	"""
	settings = get_settings()
	api_key = request.headers.get(settings.api_key_header_name)
	if api_key and api_key.strip():
		return await _resolve_user_from_api_key(db, api_key.strip())

	credentials = await bearer_scheme(request)
	if credentials is None:
		return None
	if credentials.scheme.lower() != "bearer":
		raise _raise_auth(AuthError(code="auth_required", detail="Bearer token is required"))
	return await _resolve_user_from_token(db, credentials)


async def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
	if user is None:
		raise _raise_auth(AuthError(code="auth_required", detail="Bearer token is required"))
	return user


def require_role(*allowed: UserRoleEnum) -> Callable[[User], User]:
	allowed_set = set(allowed)

	async def dependency(current_user: User = Depends(get_current_user)) -> User:
		if current_user.role not in allowed_set:
			raise HTTPException(
				status_code=status.HTTP_403_FORBIDDEN,
				detail={"error": "forbidden", "message": "Insufficient role"},
			)
		return current_user

	return dependency


async def get_optional_actor(user: User | None = Depends(get_optional_user)) -> Actor | None:
	return Actor.from_user(user) if user is not None else None
