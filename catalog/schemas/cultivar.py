"""Pydantic schemas for cultivar documents and their write payloads.

Attribute names are snake_case; the persisted and wire form is camelCase
(``medicalEffects``, ``supplierUrl`` ...), produced by the alias generator.
Image and attachment hints keep their historical ``data-ai-hint`` key.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from catalog.models.enums import (
	AdditionalInfoCategoryEnum,
	CultivarStatusEnum,
	FileTypeEnum,
	GeneticsEnum,
)
from catalog.schemas.history import HistoryEntry
from catalog.schemas.review import Review


class CatalogModel(BaseModel):
	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RangeProfile(CatalogModel):
	min: float | None = None
	max: float | None = None


class CannabinoidProfile(RangeProfile):
	"""Percentage range for one cannabinoid."""


class YieldProfile(RangeProfile):
	pass


class PricingProfile(CatalogModel):
	min: float | None = None
	max: float | None = None
	avg: float | None = None


class PlantCharacteristics(CatalogModel):
	min_height: float | None = None
	max_height: float | None = None
	min_moisture: float | None = None
	max_moisture: float | None = None
	yield_per_plant: YieldProfile | None = None
	yield_per_watt: YieldProfile | None = None
	yield_per_m2: YieldProfile | None = None


class CultivationPhases(CatalogModel):
	germination: str | None = None
	rooting: str | None = None
	vegetative: str | None = None
	flowering: str | None = None
	harvest: str | None = None


class Terpene(CatalogModel):
	id: str | None = None
	name: str
	percentage: float | None = None
	description: str | None = None


class CultivarImage(CatalogModel):
	id: str
	url: str
	alt: str = ""
	ai_hint: str | None = Field(default=None, alias="data-ai-hint")


class AdditionalFileInfo(CatalogModel):
	id: str
	name: str
	url: str
	file_type: FileTypeEnum = FileTypeEnum.document
	category: AdditionalInfoCategoryEnum
	ai_hint: str | None = Field(default=None, alias="data-ai-hint")


class AdditionalInfo(CatalogModel):
	genetic_certificate: list[AdditionalFileInfo] = Field(default_factory=list)
	plant_picture: list[AdditionalFileInfo] = Field(default_factory=list)
	cannabinoid_info: list[AdditionalFileInfo] = Field(default_factory=list)
	terpene_info: list[AdditionalFileInfo] = Field(default_factory=list)


class Cultivar(CatalogModel):
	"""Normalised in-memory cultivar, as produced by the entity mapper."""

	id: str
	name: str = ""
	genetics: GeneticsEnum | None = None
	status: CultivarStatusEnum = CultivarStatusEnum.recently_added
	description: str = ""
	source: str | None = None
	supplier_url: str | None = None

	thc: CannabinoidProfile = Field(default_factory=CannabinoidProfile)
	cbd: CannabinoidProfile = Field(default_factory=CannabinoidProfile)
	cbc: CannabinoidProfile = Field(default_factory=CannabinoidProfile)
	cbg: CannabinoidProfile = Field(default_factory=CannabinoidProfile)
	cbn: CannabinoidProfile = Field(default_factory=CannabinoidProfile)
	thcv: CannabinoidProfile = Field(default_factory=CannabinoidProfile)

	plant_characteristics: PlantCharacteristics | None = None
	pricing: PricingProfile | None = None
	cultivation_phases: CultivationPhases | None = None

	effects: list[str] = Field(default_factory=list)
	medical_effects: list[str] = Field(default_factory=list)
	flavors: list[str] = Field(default_factory=list)
	terpene_profile: list[Terpene] = Field(default_factory=list)
	images: list[CultivarImage] = Field(default_factory=list)
	additional_info: AdditionalInfo | None = None
	parents: list[str] = Field(default_factory=list)
	children: list[str] = Field(default_factory=list)

	reviews: list[Review] = Field(default_factory=list)
	history: list[HistoryEntry] = Field(default_factory=list)
	created_at: str | None = None
	updated_at: str | None = None

	def to_record(self) -> dict[str, Any]:
		"""Persisted (camelCase, JSON-safe) form without the id."""
		return self.model_dump(by_alias=True, mode="json", exclude={"id"})


class CultivarCreate(CatalogModel):
	name: str = Field(min_length=1, max_length=200)
	genetics: GeneticsEnum
	status: CultivarStatusEnum = CultivarStatusEnum.recently_added
	description: str = Field(default="", max_length=5000)
	source: str | None = Field(default=None, max_length=200)
	supplier_url: str | None = Field(default=None, max_length=2000)

	thc: CannabinoidProfile = Field(default_factory=CannabinoidProfile)
	cbd: CannabinoidProfile = Field(default_factory=CannabinoidProfile)
	cbc: CannabinoidProfile | None = None
	cbg: CannabinoidProfile | None = None
	cbn: CannabinoidProfile | None = None
	thcv: CannabinoidProfile | None = None

	plant_characteristics: PlantCharacteristics | None = None
	pricing: PricingProfile | None = None
	cultivation_phases: CultivationPhases | None = None

	effects: list[str] = Field(default_factory=list)
	medical_effects: list[str] = Field(default_factory=list)
	flavors: list[str] = Field(default_factory=list)
	terpene_profile: list[Terpene] = Field(default_factory=list)
	images: list[CultivarImage] = Field(default_factory=list)
	additional_info: AdditionalInfo | None = None
	parents: list[str] = Field(default_factory=list)
	children: list[str] = Field(default_factory=list)


class CultivarSubmission(CatalogModel):
	"""Public submission; status and source are decided by the service."""

	name: str = Field(min_length=1, max_length=200)
	genetics: GeneticsEnum
	description: str = Field(default="", max_length=5000)
	thc: CannabinoidProfile = Field(default_factory=CannabinoidProfile)
	cbd: CannabinoidProfile = Field(default_factory=CannabinoidProfile)
	effects: list[str] = Field(default_factory=list)
	flavors: list[str] = Field(default_factory=list)
	images: list[CultivarImage] = Field(default_factory=list)
	supplier_url: str | None = Field(default=None, max_length=2000)


class CultivarUpdate(CatalogModel):
	"""Partial edit; only the fields present in the request are written."""

	name: str | None = Field(default=None, min_length=1, max_length=200)
	genetics: GeneticsEnum | None = None
	status: CultivarStatusEnum | None = None
	description: str | None = Field(default=None, max_length=5000)
	source: str | None = Field(default=None, max_length=200)
	supplier_url: str | None = Field(default=None, max_length=2000)

	thc: CannabinoidProfile | None = None
	cbd: CannabinoidProfile | None = None
	cbc: CannabinoidProfile | None = None
	cbg: CannabinoidProfile | None = None
	cbn: CannabinoidProfile | None = None
	thcv: CannabinoidProfile | None = None

	plant_characteristics: PlantCharacteristics | None = None
	pricing: PricingProfile | None = None
	cultivation_phases: CultivationPhases | None = None

	effects: list[str] | None = None
	medical_effects: list[str] | None = None
	flavors: list[str] | None = None
	terpene_profile: list[Terpene] | None = None
	images: list[CultivarImage] | None = None
	additional_info: AdditionalInfo | None = None
	parents: list[str] | None = None
	children: list[str] | None = None

	def to_changes(self) -> dict[str, Any]:
		"""Top-level fields sent by the client, nested values dumped in full.

		An explicit ``null`` counts as not sent; it never clears a stored value.
		"""
		fields = type(self).model_fields
		present = {
			fields[name].alias or name for name in self.model_fields_set if getattr(self, name) is not None
		}
		dumped = self.model_dump(by_alias=True, mode="json")
		return {key: value for key, value in dumped.items() if key in present}


class StatusUpdate(CatalogModel):
	status: CultivarStatusEnum


class BulkStatusUpdate(CatalogModel):
	ids: list[str] = Field(default_factory=list, max_length=500)
	status: CultivarStatusEnum


class BulkStatusResult(CatalogModel):
	status: CultivarStatusEnum
	updated_ids: list[str]


class CultivarListRead(CatalogModel):
	items: list[Cultivar]
