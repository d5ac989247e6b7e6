"""Catalog accounts: editors and admins who curate cultivars, plus their API keys.

The account behind a request becomes the actor recorded in cultivar history,
so ``display_name`` and ``email`` end up in ``details.userName`` and
``details.userEmail``.  API keys let import and seeding jobs write as a named
account without a login.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, Enum, ForeignKey, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from catalog.models.enums import UserRoleEnum

_ROLE_TYPE = Enum(
	UserRoleEnum,
	name="user_role",
	create_constraint=False,
	native_enum=True,
	values_callable=lambda enum: [member.value for member in enum],
)


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
	"""Catalog account; viewers read audit logs, editors and admins change cultivars."""

	__tablename__ = "users"

	email: Mapped[str] = mapped_column(String(320), unique=True, index=True)
	display_name: Mapped[str | None] = mapped_column(String(255))
	hashed_password: Mapped[str] = mapped_column(String(128))
	role: Mapped[UserRoleEnum] = mapped_column(
		_ROLE_TYPE,
		default=UserRoleEnum.viewer,
		server_default=UserRoleEnum.viewer.value,
	)
	is_active: Mapped[bool] = mapped_column(default=True, server_default=text("true"))

	api_keys: Mapped[list[APIKey]] = relationship(
		back_populates="owner",
		cascade="all, delete-orphan",
		lazy="selectin",
	)

	@property
	def can_edit_catalog(self) -> bool:
		return self.role in (UserRoleEnum.admin, UserRoleEnum.editor)

	def __repr__(self) -> str:
		return f"<User {self.email!r} role={self.role}>"


class APIKey(Base, UUIDPrimaryKeyMixin, TimestampMixin):
	"""Key for automated catalog writers; only its SHA-256 or bcrypt hash is kept."""

	__tablename__ = "api_keys"

	user_id: Mapped[uuid.UUID] = mapped_column(
		UUID(as_uuid=True),
		ForeignKey("users.id", ondelete="CASCADE"),
		index=True,
	)
	key_hash: Mapped[str] = mapped_column(String(128), unique=True)
	name: Mapped[str] = mapped_column(String(100))
	expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	is_active: Mapped[bool] = mapped_column(default=True, server_default=text("true"))

	owner: Mapped[User] = relationship(back_populates="api_keys")

	def is_expired(self, now: datetime | None = None) -> bool:
		if self.expires_at is None:
			return False
		return self.expires_at <= (now or datetime.now(UTC))

	def __repr__(self) -> str:
		return f"<APIKey {self.name!r} owner={self.user_id}>"
