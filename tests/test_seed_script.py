from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from catalog.models.enums import UserRoleEnum
from catalog.services.audit_log import SEED_DISPLAY, list_logs
from catalog.services.cultivar_service import CultivarService
from catalog.store import SERVER_TIMESTAMP, MemoryDocumentStore
from scripts import seed_db
from scripts.seed_db import SAMPLE_CULTIVARS, _is_missing, _seed_record, ensure_user, seed_cultivars


def test_seed_record_defaults_and_history() -> None:
    cosmic = _seed_record(SAMPLE_CULTIVARS[0])
    indica = _seed_record(SAMPLE_CULTIVARS[1])

    assert cosmic["status"] == "verified"
    assert indica["status"] == "recentlyAdded"
    assert indica["reviews"] == []
    assert indica["createdAt"] is SERVER_TIMESTAMP
    assert [entry["event"] for entry in indica["history"]] == ["Cultivar Seeded"]
    assert indica["history"][0]["details"]["seededBy"] == "system"
    assert "userId" not in indica["history"][0]


def test_seed_record_does_not_share_sample_data() -> None:
    record = _seed_record(SAMPLE_CULTIVARS[0])
    record["effects"].append("Sleepy")
    assert "Sleepy" not in SAMPLE_CULTIVARS[0]["effects"]


def test_is_missing_helper() -> None:
    assert _is_missing(None) is True
    assert _is_missing("  ") is True
    assert _is_missing(0) is False
    assert _is_missing("Sativa") is False


@pytest.mark.asyncio
async def test_seed_is_idempotent_by_name() -> None:
    store = MemoryDocumentStore()

    first = await seed_cultivars(store)
    second = await seed_cultivars(store)
    forced = await seed_cultivars(store, SAMPLE_CULTIVARS[:1], force=True)

    assert len(first) == 4
    assert second == []
    assert len(forced) == 1
    assert len(await store.list("cultivars")) == 5


@pytest.mark.asyncio
async def test_seeded_cultivars_map_and_show_in_logs() -> None:
    store = MemoryDocumentStore()
    await seed_cultivars(store)

    cultivars = await CultivarService(store).list_cultivars()
    names = [cultivar.name for cultivar in cultivars]
    logs = list_logs(cultivars)

    assert names == ["Cosmic Haze", "Hybrid Harmony", "Indica Dream", "Ruderalis Ranger"]
    assert cultivars[0].additional_info is not None
    assert cultivars[0].additional_info.plant_picture[0].ai_hint == "trichome macro"
    assert len(logs) == 4
    assert {entry.user_display for entry in logs} == {SEED_DISPLAY}


@pytest.mark.asyncio
async def test_ensure_user_creates_once(fake_db_session: Any, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(seed_db, "hash_password", lambda password: f"hashed:{password}")
    fake_db_session.add = lambda user: setattr(fake_db_session, "added", user)
    fake_db_session.flush = fake_db_session.commit
    fake_db_session.execute.return_value = SimpleNamespace(scalar_one_or_none=lambda: None)

    user = await ensure_user(fake_db_session, " Admin@Example.com ", "secret")

    assert fake_db_session.added is user
    assert user.email == "admin@example.com"
    assert user.hashed_password == "hashed:secret"
    assert user.role == UserRoleEnum.admin

    fake_db_session.execute.return_value = SimpleNamespace(scalar_one_or_none=lambda: user)
    assert await ensure_user(fake_db_session, "admin@example.com", "other") is user
