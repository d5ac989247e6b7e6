from __future__ import annotations

from datetime import UTC, datetime

from catalog.models.enums import CultivarStatusEnum, FileTypeEnum, GeneticsEnum
from catalog.schemas.cultivar import CannabinoidProfile
from catalog.services.mapper import map_to_entity, normalize_timestamp, parse_timestamp


class _StoreTimestamp:
    def __init__(self, value: datetime) -> None:
        self.value = value

    def to_datetime(self) -> datetime:
        return self.value


def _raw() -> dict[str, object]:
    return {
        "name": "Cosmic Haze",
        "genetics": "Sativa",
        "status": "verified",
        "description": "Citrus and cerebral.",
        "thc": {"min": 20, "max": 25},
        "cbd": {"min": "0.5", "max": 1},
        "effects": ["Energetic", 7, "Creative"],
        "images": [
            {"id": "img-1", "url": "https://placehold.co/600x400.png", "alt": "bud", "data-ai-hint": "cannabis bud"},
            {"id": "img-2", "alt": "missing url"},
        ],
        "terpeneProfile": [{"name": "Limonene", "percentage": 1.2}, {"percentage": 0.4}],
        "plantCharacteristics": {"minHeight": 100, "yieldPerM2": {"min": 450, "max": 600}},
        "additionalInfo": {
            "geneticCertificate": [
                {"id": "cert-1", "name": "COA", "url": "https://placehold.co/doc.pdf", "fileType": "pdf", "category": "geneticCertificate"}
            ],
        },
        "reviews": [{"id": "r1", "user": "sam", "rating": 9, "text": "great"}],
        "history": [
            {"timestamp": "2024-05-01T10:00:00+00:00", "event": "Cultivar Created by Admin", "userId": "u1", "details": {"userEmail": "a@b.c"}},
            {"timestamp": "not-a-date", "event": 42},
        ],
        "createdAt": datetime(2024, 5, 1, 10, 0),
        "updatedAt": _StoreTimestamp(datetime(2024, 5, 2, 8, 30, tzinfo=UTC)),
    }


def test_empty_record_gets_defaults() -> None:
    cultivar = map_to_entity({}, "abc")

    assert cultivar.id == "abc"
    assert cultivar.name == ""
    assert cultivar.genetics is None
    assert cultivar.status == CultivarStatusEnum.recently_added
    assert cultivar.thc == CannabinoidProfile()
    assert cultivar.thcv == CannabinoidProfile()
    assert cultivar.effects == []
    assert cultivar.history == []
    assert cultivar.created_at is None
    assert cultivar.updated_at is None


def test_non_mapping_record_does_not_raise() -> None:
    cultivar = map_to_entity(None, "x")
    assert cultivar.id == "x"
    assert cultivar.images == []


def test_unknown_enum_values_fall_back() -> None:
    cultivar = map_to_entity({"status": "pending-review", "genetics": "Alien"}, "x")
    assert cultivar.status == CultivarStatusEnum.recently_added
    assert cultivar.genetics is None


def test_maps_nested_structures() -> None:
    cultivar = map_to_entity(_raw(), "doc-1")

    assert cultivar.genetics == GeneticsEnum.sativa
    assert cultivar.status == CultivarStatusEnum.verified
    assert cultivar.thc.min == 20.0
    assert cultivar.cbd.min == 0.5
    assert cultivar.effects == ["Energetic", "Creative"]
    assert [image.id for image in cultivar.images] == ["img-1"]
    assert cultivar.images[0].ai_hint == "cannabis bud"
    assert [terpene.name for terpene in cultivar.terpene_profile] == ["Limonene"]
    assert cultivar.plant_characteristics is not None
    assert cultivar.plant_characteristics.yield_per_m2 is not None
    assert cultivar.plant_characteristics.yield_per_m2.max == 600.0
    assert cultivar.additional_info is not None
    assert cultivar.additional_info.genetic_certificate[0].file_type == FileTypeEnum.pdf
    assert cultivar.additional_info.plant_picture == []
    assert cultivar.reviews[0].rating == 5


def test_history_entries_keep_string_timestamps_verbatim() -> None:
    cultivar = map_to_entity(_raw(), "doc-1")

    assert cultivar.history[0].timestamp == "2024-05-01T10:00:00+00:00"
    assert cultivar.history[0].user_id == "u1"
    assert cultivar.history[1].timestamp == "not-a-date"
    assert cultivar.history[1].event is None


def test_timestamps_normalised_to_utc_iso() -> None:
    cultivar = map_to_entity(_raw(), "doc-1")

    assert cultivar.created_at == "2024-05-01T10:00:00+00:00"
    assert cultivar.updated_at == "2024-05-02T08:30:00+00:00"


def test_unreadable_timestamp_becomes_now() -> None:
    before = datetime.now(UTC)
    value = normalize_timestamp("yesterday-ish")
    parsed = parse_timestamp(value)

    assert parsed is not None
    assert parsed >= before.replace(microsecond=0)
    assert normalize_timestamp(None) is None
    assert parse_timestamp("yesterday-ish") is None


def test_mapping_is_idempotent() -> None:
    first = map_to_entity(_raw(), "doc-1")
    second = map_to_entity(first.to_record(), "doc-1")

    assert second == first
    assert second.to_record() == first.to_record()
