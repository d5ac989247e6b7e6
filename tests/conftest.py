"""Shared pytest fixtures — in-memory store, async test client, auth stubs."""

from __future__ import annotations

import hashlib
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from catalog.auth.dependencies import get_current_user, get_optional_user
from catalog.auth.jwt import create_access_token
from catalog.config import get_settings
from catalog.database import get_db
from catalog.main import app
from catalog.models.enums import UserRoleEnum
from catalog.services.history import Actor
from catalog.services.review_service import ReviewGenerator, get_review_generator
from catalog.storage import LocalObjectStorage, get_storage
from catalog.store import MemoryDocumentStore, get_store


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()


class FakeRedis:
	def __init__(self) -> None:
		self._counter: dict[str, int] = {}
		self.incr = AsyncMock(side_effect=self._incr)
		self.expire = AsyncMock(return_value=True)
		self.ping = AsyncMock(return_value=True)

	async def _incr(self, key: str) -> int:
		value = self._counter.get(key, 0) + 1
		self._counter[key] = value
		return value

	def reset_counters(self) -> None:
		self._counter.clear()


def make_user(role: UserRoleEnum = UserRoleEnum.admin, email: str = "admin@test.local") -> SimpleNamespace:
	return SimpleNamespace(
		id=uuid.uuid4(),
		role=role,
		is_active=True,
		email=email,
		display_name=email.split("@")[0].title(),
	)


def offline_review_generator() -> ReviewGenerator:
	generator = ReviewGenerator()
	generator.settings = get_settings().model_copy(update={"anthropic_api_key": ""})
	return generator


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
def store() -> MemoryDocumentStore:
	"""Fresh in-memory document store per test."""
	return MemoryDocumentStore()


@pytest.fixture
def storage(tmp_path: Path) -> LocalObjectStorage:
	return LocalObjectStorage(str(tmp_path / "uploads"), "http://test/uploads")


@pytest.fixture
def admin_user() -> SimpleNamespace:
	return make_user()


@pytest.fixture
def actor(admin_user: SimpleNamespace) -> Actor:
	return Actor.from_user(admin_user)


@asynccontextmanager
async def _noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
	yield


@pytest.fixture
async def client(
	fake_db_session: FakeAsyncSession,
	store: MemoryDocumentStore,
	storage: LocalObjectStorage,
	admin_user: SimpleNamespace,
) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled, an admin caller and the memory store."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	async def override_user() -> Any:
		return admin_user

	app.dependency_overrides[get_db] = override_get_db
	app.dependency_overrides[get_store] = lambda: store
	app.dependency_overrides[get_storage] = lambda: storage
	app.dependency_overrides[get_review_generator] = offline_review_generator
	app.dependency_overrides[get_optional_user] = override_user
	app.dependency_overrides[get_current_user] = override_user
	original_lifespan = app.router.lifespan_context
	app.router.lifespan_context = _noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()


@pytest.fixture
async def auth_client(
	fake_db_session: FakeAsyncSession,
	store: MemoryDocumentStore,
) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with the real auth dependencies active."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	app.dependency_overrides[get_store] = lambda: store
	original_lifespan = app.router.lifespan_context
	app.router.lifespan_context = _noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()


@pytest.fixture
def auth_user_id() -> uuid.UUID:
	return uuid.UUID("11111111-1111-1111-1111-111111111111")


@pytest.fixture
def access_token(auth_user_id: uuid.UUID) -> str:
	return create_access_token(str(auth_user_id), expires_minutes=30)


@pytest.fixture
def api_key_plaintext() -> str:
	return "catalog-test-key"


@pytest.fixture
def api_key_sha256(api_key_plaintext: str) -> str:
	return hashlib.sha256(api_key_plaintext.encode("utf-8")).hexdigest()


@pytest.fixture
def now_utc() -> datetime:
	return datetime.now(UTC)


@pytest.fixture
def user_factory() -> Any:
	return make_user
