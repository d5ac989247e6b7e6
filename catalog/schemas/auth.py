"""Pydantic schemas for token issuance and the current-user endpoint."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field

from catalog.models.enums import UserRoleEnum


class TokenRequest(BaseModel):
	email: str = Field(min_length=3, max_length=320)
	password: str = Field(min_length=1, max_length=256)


class TokenResponse(BaseModel):
	access_token: str
	refresh_token: str
	token_type: str = "bearer"


class CurrentUserRead(BaseModel):
	id: uuid.UUID
	email: str
	display_name: str | None = None
	role: UserRoleEnum
	can_edit: bool = False
