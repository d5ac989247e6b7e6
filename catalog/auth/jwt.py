"""Bearer token issuance and verification for catalog users."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from jose import JWTError, jwt

from catalog.config import get_settings

TokenType = Literal["access", "refresh"]


@dataclass(slots=True)
class AuthError(Exception):
	"""Structured authentication error for consistent mapping at the edge."""

	code: str
	detail: str
	status_code: int = 401


@dataclass(frozen=True, slots=True)
class TokenClaims:
	subject: str
	token_type: TokenType
	expires_at: datetime
	email: str | None = None


def _encode(subject: str, token_type: TokenType, ttl: timedelta, email: str | None) -> str:
	settings = get_settings()
	issued = datetime.now(UTC)
	claims: dict[str, Any] = {
		"sub": subject,
		"typ": token_type,
		"iat": int(issued.timestamp()),
		"exp": int((issued + ttl).timestamp()),
	}
	if email:
		claims["email"] = email
	return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(subject: str, expires_minutes: int | None = None, email: str | None = None) -> str:
	minutes = expires_minutes or get_settings().jwt_access_token_expire_minutes
	return _encode(subject, "access", timedelta(minutes=minutes), email)


def create_refresh_token(subject: str, expires_minutes: int | None = None) -> str:
	minutes = expires_minutes or get_settings().jwt_refresh_token_expire_minutes
	return _encode(subject, "refresh", timedelta(minutes=minutes), None)


def decode_token(token: str, expected_type: TokenType | None = None) -> TokenClaims:
	settings = get_settings()
	try:
		payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
	except JWTError as exc:
		raise AuthError(code="token_invalid", detail="Invalid authentication token") from exc

	subject = payload.get("sub")
	if not isinstance(subject, str) or not subject:
		raise AuthError(code="token_invalid", detail="Token subject is missing")

	token_type = payload.get("typ")
	if token_type not in ("access", "refresh"):
		raise AuthError(code="token_invalid", detail="Token type is missing")
	if expected_type is not None and token_type != expected_type:
		raise AuthError(code="token_type_invalid", detail=f"Expected {expected_type} token")

	exp_raw = payload.get("exp")
	if not isinstance(exp_raw, int):
		raise AuthError(code="token_invalid", detail="Token expiration is missing")
	expires_at = datetime.fromtimestamp(exp_raw, UTC)
	if datetime.now(UTC) >= expires_at:
		raise AuthError(code="token_expired", detail="Authentication token has expired")

	email = payload.get("email")
	return TokenClaims(
		subject=subject,
		token_type=token_type,
		expires_at=expires_at,
		email=email if isinstance(email, str) else None,
	)
