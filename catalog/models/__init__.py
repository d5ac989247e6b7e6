"""ORM model registry — importing this module registers the catalog tables on Base.metadata.

Auth tables live in ``catalog.auth.models``, which imports from this package;
``alembic/env.py`` imports both so autogenerate sees every table.
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from catalog.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# ── Document store ──────────────────────────────────────────────────────────
from catalog.models.document import Document

# ── Enums ───────────────────────────────────────────────────────────────────
from catalog.models.enums import (
    AdditionalInfoCategoryEnum,
    CultivarStatusEnum,
    FileTypeEnum,
    GeneticsEnum,
    UserRoleEnum,
)

__all__ = [
    "AdditionalInfoCategoryEnum",
    # Base & mixins
    "Base",
    "CultivarStatusEnum",
    # Document store
    "Document",
    "FileTypeEnum",
    "GeneticsEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "UserRoleEnum",
]
