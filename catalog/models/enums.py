"""Enum types shared by the ORM models and the API schemas.

Catalog enums (genetics, status, file categories) are plain StrEnums stored
as strings inside cultivar documents; only ``UserRoleEnum`` maps to a
PostgreSQL ENUM type.
"""

from enum import StrEnum

# ── Catalog enums ───────────────────────────────────────────────────────────


class GeneticsEnum(StrEnum):
    """Dominant genetic lineage of a cultivar."""

    sativa = "Sativa"
    indica = "Indica"
    hybrid = "Hybrid"
    ruderalis = "Ruderalis"


class CultivarStatusEnum(StrEnum):
    """Lifecycle / visibility tag on a cultivar.

    There is no transition graph: any status may move to any other.
    """

    recently_added = "recentlyAdded"
    verified = "verified"
    archived = "archived"
    live = "Live"
    featured = "featured"
    user_submitted = "User Submitted"
    hide = "Hide"


class AdditionalInfoCategoryEnum(StrEnum):
    """Buckets for supporting documents attached to a cultivar."""

    genetic_certificate = "geneticCertificate"
    plant_picture = "plantPicture"
    cannabinoid_info = "cannabinoidInfo"
    terpene_info = "terpeneInfo"


class FileTypeEnum(StrEnum):
    image = "image"
    pdf = "pdf"
    document = "document"


# ── Auth enums ──────────────────────────────────────────────────────────────


class UserRoleEnum(StrEnum):
    """User authorization roles for RBAC."""

    admin = "admin"
    editor = "editor"
    viewer = "viewer"
