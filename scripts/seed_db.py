"""Load the sample cultivars into the catalog document store.

Usage:
    python -m scripts.seed_db            # skip cultivars whose name already exists
    python -m scripts.seed_db --force    # insert every sample regardless
    python -m scripts.seed_db --admin-email admin@example.com --admin-password secret
"""

from __future__ import annotations

import argparse
import asyncio
import copy
from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.auth.dependencies import hash_password
from catalog.auth.models import User
from catalog.config import get_settings
from catalog.database import async_session_factory
from catalog.middleware.logging import configure_structured_logging
from catalog.models.enums import CultivarStatusEnum, UserRoleEnum
from catalog.services.history import EVENT_SEEDED, SEED_MARKER, build_history_entry, entry_record
from catalog.store import SERVER_TIMESTAMP, DocumentStore, SqlDocumentStore

logger = structlog.get_logger("catalog.seed")

SAMPLE_CULTIVARS: list[dict[str, Any]] = [
	{
		"name": "Cosmic Haze",
		"genetics": "Sativa",
		"status": "verified",
		"description": (
			"An uplifting Sativa known for its cerebral effects and citrus aroma. "
			"Perfect for daytime use and creative endeavors."
		),
		"supplierUrl": "https://example.com/cosmic-haze",
		"parents": ["Super Silver Haze", "Galaxy OG"],
		"children": ["Nebula Sparkle"],
		"thc": {"min": 20, "max": 25},
		"cbd": {"min": 0, "max": 1},
		"cbc": {"min": 0.1, "max": 0.5},
		"cbg": {"min": 0.5, "max": 1.5},
		"images": [
			{"id": "img-ch-1", "url": "https://placehold.co/600x400.png", "alt": "Cosmic Haze bud", "data-ai-hint": "cannabis bud"},
			{"id": "img-ch-2", "url": "https://placehold.co/600x400.png", "alt": "Cosmic Haze plant", "data-ai-hint": "cannabis plant"},
		],
		"effects": ["Energetic", "Creative", "Uplifted", "Happy"],
		"medicalEffects": ["Stress Relief", "Depression Relief", "Fatigue"],
		"terpeneProfile": [
			{"id": "tp-ch-1", "name": "Limonene", "percentage": 1.2, "description": "Citrus aroma"},
			{"id": "tp-ch-2", "name": "Terpinolene", "percentage": 0.8, "description": "Fruity, floral notes"},
		],
		"cultivationPhases": {
			"germination": "3-5 days",
			"rooting": "7-10 days",
			"vegetative": "4-6 weeks",
			"flowering": "9-11 weeks",
			"harvest": "After 9-11 weeks of flowering",
		},
		"plantCharacteristics": {
			"minHeight": 100,
			"maxHeight": 180,
			"minMoisture": 9,
			"maxMoisture": 12,
			"yieldPerPlant": {"min": 300, "max": 500},
			"yieldPerM2": {"min": 450, "max": 600},
		},
		"pricing": {"min": 10, "max": 15, "avg": 12.5},
		"additionalInfo": {
			"geneticCertificate": [
				{
					"id": "cert-ch-1",
					"name": "Cosmic Haze COA",
					"url": "https://placehold.co/doc.pdf",
					"fileType": "pdf",
					"category": "geneticCertificate",
				}
			],
			"plantPicture": [
				{
					"id": "addpic-ch-1",
					"name": "Trichome Macro",
					"url": "https://placehold.co/300x200.png",
					"fileType": "image",
					"category": "plantPicture",
					"data-ai-hint": "trichome macro",
				}
			],
		},
	},
	{
		"name": "Indica Dream",
		"genetics": "Indica",
		"description": (
			"A deeply relaxing Indica, perfect for unwinding at the end of the day. "
			"Features earthy and sweet notes."
		),
		"supplierUrl": "https://example.com/indica-dream",
		"parents": ["Afghan Kush", "Northern Lights"],
		"thc": {"min": 18, "max": 22},
		"cbd": {"min": 0, "max": 2},
		"images": [
			{"id": "img-id-1", "url": "https://placehold.co/600x400.png", "alt": "Indica Dream bud", "data-ai-hint": "dark bud"},
		],
		"effects": ["Relaxed", "Sleepy", "Happy", "Hungry"],
		"medicalEffects": ["Pain Relief", "Insomnia", "Stress Relief"],
		"terpeneProfile": [
			{"id": "tp-id-1", "name": "Myrcene", "percentage": 1.5, "description": "Earthy, musky"},
			{"id": "tp-id-2", "name": "Beta-Caryophyllene", "percentage": 0.7, "description": "Peppery, spicy"},
		],
		"cultivationPhases": {"flowering": "8-9 weeks"},
		"plantCharacteristics": {"minHeight": 60, "maxHeight": 120, "yieldPerWatt": {"min": 0.8, "max": 1.2}},
		"pricing": {"min": 9, "max": 13, "avg": 11.0},
	},
	{
		"name": "Hybrid Harmony",
		"genetics": "Hybrid",
		"status": "verified",
		"description": (
			"A balanced hybrid offering the best of both worlds. Provides a gentle "
			"euphoria and relaxation without heavy sedation."
		),
		"thc": {"min": 19, "max": 23},
		"cbd": {"min": 0.5, "max": 1.5},
		"images": [
			{"id": "img-hh-1", "url": "https://placehold.co/600x400.png", "alt": "Hybrid Harmony flower", "data-ai-hint": "green flower"},
		],
		"effects": ["Happy", "Uplifted", "Relaxed", "Focused"],
		"medicalEffects": ["Anxiety Relief", "Mild Pain Relief"],
		"terpeneProfile": [
			{"id": "tp-hh-1", "name": "Limonene", "description": "Citrus notes"},
			{"id": "tp-hh-2", "name": "Linalool", "description": "Floral, sweet"},
		],
		"cultivationPhases": {"vegetative": "3-5 weeks", "flowering": "8-10 weeks"},
		"plantCharacteristics": {"minHeight": 80, "maxHeight": 150},
		"pricing": {"avg": 11.75},
	},
	{
		"name": "Ruderalis Ranger",
		"genetics": "Ruderalis",
		"description": (
			"A hardy autoflowering strain, known for its resilience and quick turnaround. "
			"Lower THC but great for beginners."
		),
		"thc": {"min": 8, "max": 14},
		"cbd": {"min": 1, "max": 4},
		"images": [
			{"id": "img-rr-1", "url": "https://placehold.co/600x400.png", "alt": "Ruderalis Ranger plant", "data-ai-hint": "small plant"},
		],
		"effects": ["Calm", "Mildly Relaxed"],
		"cultivationPhases": {"germination": "2-4 days", "flowering": "6-8 weeks (auto)"},
		"plantCharacteristics": {"minHeight": 40, "maxHeight": 80},
	},
]


def _is_missing(value: Any) -> bool:
	return value is None or (isinstance(value, str) and not value.strip())


def _seed_record(sample: Mapping[str, Any]) -> dict[str, Any]:
	"""Stored form of one sample: default status, empty reviews, one seed entry."""
	record = {key: copy.deepcopy(value) for key, value in sample.items() if not _is_missing(value)}
	record.setdefault("status", CultivarStatusEnum.recently_added.value)
	entry = build_history_entry(EVENT_SEEDED, None, {"seededBy": SEED_MARKER, "name": record.get("name")})
	record.update(
		{
			"reviews": [],
			"history": [entry_record(entry)],
			"createdAt": SERVER_TIMESTAMP,
			"updatedAt": SERVER_TIMESTAMP,
		}
	)
	return record


async def seed_cultivars(
	store: DocumentStore,
	samples: Iterable[Mapping[str, Any]] = SAMPLE_CULTIVARS,
	*,
	force: bool = False,
	collection: str | None = None,
) -> list[str]:
	"""Insert the samples and return the new ids; existing names are skipped unless ``force``."""
	target = collection or get_settings().cultivars_collection
	existing = set()
	if not force:
		existing = {snap.data.get("name") for snap in await store.list(target)}

	created: list[str] = []
	for sample in samples:
		name = sample.get("name")
		if name in existing:
			logger.info("seed_skipped_existing", name=name)
			continue
		cultivar_id = await store.add(target, _seed_record(sample))
		logger.info("seed_cultivar_added", name=name, cultivar_id=cultivar_id, status=sample.get("status"))
		created.append(cultivar_id)
	return created


async def ensure_user(
	session: AsyncSession,
	email: str,
	password: str,
	role: UserRoleEnum = UserRoleEnum.admin,
) -> User:
	"""Create the user unless one with this email already exists."""
	normalized = email.strip().lower()
	row = await session.execute(select(User).where(User.email == normalized))
	user = row.scalar_one_or_none()
	if user is not None:
		logger.info("seed_user_exists", email=normalized)
		return user
	user = User(
		email=normalized,
		display_name=normalized.split("@")[0],
		hashed_password=hash_password(password),
		role=role,
	)
	session.add(user)
	await session.flush()
	logger.info("seed_user_created", email=normalized, role=role.value)
	return user


async def _run(force: bool, admin_email: str | None, admin_password: str | None) -> int:
	async with async_session_factory() as session:
		if admin_email and admin_password:
			await ensure_user(session, admin_email, admin_password)
		created = await seed_cultivars(SqlDocumentStore(session), force=force)
		await session.commit()
	logger.info("seed_completed", created=len(created))
	return len(created)


def main(argv: list[str] | None = None) -> None:
	parser = argparse.ArgumentParser(description="Seed the cultivar catalog with sample data")
	parser.add_argument("--force", action="store_true", help="insert samples even if the name exists")
	parser.add_argument("--admin-email", help="also create an admin user with this email")
	parser.add_argument("--admin-password", help="password for --admin-email")
	args = parser.parse_args(argv)
	if bool(args.admin_email) != bool(args.admin_password):
		parser.error("--admin-email and --admin-password must be given together")
	configure_structured_logging()
	asyncio.run(_run(args.force, args.admin_email, args.admin_password))


if __name__ == "__main__":
	main()
