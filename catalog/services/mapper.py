"""Entity mapper — raw stored records to normalised ``Cultivar`` objects.

The mapper never raises on malformed input: missing profiles and arrays get
defaults, unknown enum values fall back, and unreadable timestamps become the
current time.  Mapping an already-mapped cultivar's dump is a no-op.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ValidationError

from catalog.models.enums import (
	AdditionalInfoCategoryEnum,
	CultivarStatusEnum,
	FileTypeEnum,
	GeneticsEnum,
)
from catalog.schemas.cultivar import (
	AdditionalFileInfo,
	AdditionalInfo,
	CannabinoidProfile,
	Cultivar,
	CultivarImage,
	CultivationPhases,
	PlantCharacteristics,
	PricingProfile,
	Terpene,
	YieldProfile,
)
from catalog.schemas.history import HistoryEntry
from catalog.schemas.review import Review

CANNABINOID_FIELDS = ("thc", "cbd", "cbc", "cbg", "cbn", "thcv")
STRING_LIST_FIELDS = ("effects", "medicalEffects", "flavors", "parents", "children")
_ADDITIONAL_INFO_KEYS = {category.value: category for category in AdditionalInfoCategoryEnum}


def normalize_timestamp(value: Any) -> str | None:
	"""Return an ISO-8601 UTC string for any stored timestamp representation.

	Accepts ``datetime`` objects, store-native timestamp objects exposing
	``to_datetime()`` / ``ToDatetime()``, and ISO-8601 strings.  Anything else
	that is present but unreadable falls back to the current time.  ``None``
	stays ``None``.
	"""
	if value is None:
		return None
	parsed = _coerce_datetime(value)
	if parsed is None:
		parsed = datetime.now(UTC)
	return parsed.isoformat()


def parse_timestamp(value: Any) -> datetime | None:
	"""Strict variant: returns ``None`` instead of falling back to now."""
	if value is None:
		return None
	return _coerce_datetime(value)


def _coerce_datetime(value: Any) -> datetime | None:
	if isinstance(value, datetime):
		parsed = value
	elif isinstance(value, str):
		try:
			parsed = datetime.fromisoformat(value.strip())
		except ValueError:
			return None
	else:
		converter = getattr(value, "to_datetime", None) or getattr(value, "ToDatetime", None)
		if not callable(converter):
			return None
		try:
			parsed = converter()
		except (TypeError, ValueError, OverflowError):
			return None
		if not isinstance(parsed, datetime):
			return None
	if parsed.tzinfo is None:
		parsed = parsed.replace(tzinfo=UTC)
	return parsed.astimezone(UTC)


def map_to_entity(raw: Mapping[str, Any] | None, doc_id: str) -> Cultivar:
	data: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}

	fields: dict[str, Any] = {
		"id": str(doc_id),
		"name": _string(data.get("name")) or "",
		"genetics": _enum(GeneticsEnum, data.get("genetics")),
		"status": _enum(CultivarStatusEnum, data.get("status")) or CultivarStatusEnum.recently_added,
		"description": _string(data.get("description")) or "",
		"source": _string(data.get("source")),
		"supplier_url": _string(data.get("supplierUrl")),
		"plant_characteristics": _plant_characteristics(data.get("plantCharacteristics")),
		"pricing": _model(PricingProfile, data.get("pricing"), _numbers(data.get("pricing"), ("min", "max", "avg"))),
		"cultivation_phases": _cultivation_phases(data.get("cultivationPhases")),
		"terpene_profile": _items(data.get("terpeneProfile"), _terpene),
		"images": _items(data.get("images"), _image),
		"additional_info": _additional_info(data.get("additionalInfo")),
		"reviews": _items(data.get("reviews"), _review),
		"history": _items(data.get("history"), _history_entry),
		"created_at": normalize_timestamp(data.get("createdAt")),
		"updated_at": normalize_timestamp(data.get("updatedAt")),
	}
	for name in CANNABINOID_FIELDS:
		fields[name] = _range(CannabinoidProfile, data.get(name)) or CannabinoidProfile()
	fields["effects"] = _string_list(data.get("effects"))
	fields["medical_effects"] = _string_list(data.get("medicalEffects"))
	fields["flavors"] = _string_list(data.get("flavors"))
	fields["parents"] = _string_list(data.get("parents"))
	fields["children"] = _string_list(data.get("children"))

	return Cultivar(**fields)


# ── helpers ────────────────────────────────────────────────────────────────


def _string(value: Any) -> str | None:
	if value is None:
		return None
	if isinstance(value, str):
		return value
	if isinstance(value, (int, float)) and not isinstance(value, bool):
		return str(value)
	return None


def _number(value: Any) -> float | None:
	if isinstance(value, bool) or value is None:
		return None
	if isinstance(value, (int, float)):
		return float(value)
	if isinstance(value, str):
		try:
			return float(value)
		except ValueError:
			return None
	return None


def _numbers(raw: Any, keys: tuple[str, ...]) -> dict[str, float | None]:
	if not isinstance(raw, Mapping):
		return {}
	return {key: _number(raw.get(key)) for key in keys}


def _enum(enum_cls: type, value: Any) -> Any:
	try:
		return enum_cls(value)
	except (TypeError, ValueError):
		return None


def _model(model_cls: type[BaseModel], raw: Any, fields: dict[str, Any]) -> Any:
	if not isinstance(raw, Mapping):
		return None
	try:
		return model_cls(**fields)
	except ValidationError:
		return None


def _range(model_cls: type[BaseModel], raw: Any) -> Any:
	return _model(model_cls, raw, _numbers(raw, ("min", "max")))


def _string_list(value: Any) -> list[str]:
	if not isinstance(value, list):
		return []
	return [item for item in value if isinstance(item, str)]


def _items(value: Any, convert: Any) -> list[Any]:
	if not isinstance(value, list):
		return []
	converted = (convert(item, index) for index, item in enumerate(value))
	return [item for item in converted if item is not None]


def _plant_characteristics(raw: Any) -> PlantCharacteristics | None:
	if not isinstance(raw, Mapping):
		return None
	fields: dict[str, Any] = _numbers(raw, ("minHeight", "maxHeight", "minMoisture", "maxMoisture"))
	fields["yieldPerPlant"] = _range(YieldProfile, raw.get("yieldPerPlant"))
	fields["yieldPerWatt"] = _range(YieldProfile, raw.get("yieldPerWatt"))
	fields["yieldPerM2"] = _range(YieldProfile, raw.get("yieldPerM2"))
	return _model(PlantCharacteristics, raw, fields)


def _cultivation_phases(raw: Any) -> CultivationPhases | None:
	if not isinstance(raw, Mapping):
		return None
	keys = ("germination", "rooting", "vegetative", "flowering", "harvest")
	return _model(CultivationPhases, raw, {key: _string(raw.get(key)) for key in keys})


def _terpene(raw: Any, index: int) -> Terpene | None:
	if not isinstance(raw, Mapping) or not _string(raw.get("name")):
		return None
	return _model(
		Terpene,
		raw,
		{
			"id": _string(raw.get("id")),
			"name": _string(raw.get("name")),
			"percentage": _number(raw.get("percentage")),
			"description": _string(raw.get("description")),
		},
	)


def _image(raw: Any, index: int) -> CultivarImage | None:
	if not isinstance(raw, Mapping) or not _string(raw.get("url")):
		return None
	return _model(
		CultivarImage,
		raw,
		{
			"id": _string(raw.get("id")) or f"image-{index}",
			"url": _string(raw.get("url")),
			"alt": _string(raw.get("alt")) or "",
			"data-ai-hint": _string(raw.get("data-ai-hint")),
		},
	)


def _additional_file(raw: Any, index: int, category: AdditionalInfoCategoryEnum) -> AdditionalFileInfo | None:
	if not isinstance(raw, Mapping) or not _string(raw.get("url")):
		return None
	return _model(
		AdditionalFileInfo,
		raw,
		{
			"id": _string(raw.get("id")) or f"{category.value}-{index}",
			"name": _string(raw.get("name")) or "",
			"url": _string(raw.get("url")),
			"fileType": _enum(FileTypeEnum, raw.get("fileType")) or FileTypeEnum.document,
			"category": category,
			"data-ai-hint": _string(raw.get("data-ai-hint")),
		},
	)


def _additional_info(raw: Any) -> AdditionalInfo | None:
	if not isinstance(raw, Mapping):
		return None
	fields: dict[str, list[AdditionalFileInfo]] = {}
	for key, category in _ADDITIONAL_INFO_KEYS.items():
		fields[key] = _items(raw.get(key), lambda item, index, c=category: _additional_file(item, index, c))
	return AdditionalInfo(**fields)


def _review(raw: Any, index: int) -> Review | None:
	if not isinstance(raw, Mapping):
		return None
	rating = _number(raw.get("rating"))
	rating_value = 1 if rating is None else int(min(5, max(1, round(rating))))
	return _model(
		Review,
		raw,
		{
			"id": _string(raw.get("id")) or f"review-{index}",
			"user": _string(raw.get("user")) or "Anonymous",
			"rating": rating_value,
			"text": _string(raw.get("text")) or "",
			"sentimentScore": _number(raw.get("sentimentScore")),
			"createdAt": normalize_timestamp(raw.get("createdAt")),
		},
	)


def _history_entry(raw: Any, index: int) -> HistoryEntry | None:
	if not isinstance(raw, Mapping):
		return None
	timestamp = raw.get("timestamp")
	if timestamp is not None and not isinstance(timestamp, str):
		# store-native timestamps are converted; strings are kept verbatim
		parsed = parse_timestamp(timestamp)
		timestamp = parsed.isoformat() if parsed is not None else None
	details = raw.get("details")
	return HistoryEntry(
		timestamp=timestamp,
		event=raw.get("event") if isinstance(raw.get("event"), str) else None,
		user_id=_string(raw.get("userId")),
		details=dict(details) if isinstance(details, Mapping) else {},
	)
