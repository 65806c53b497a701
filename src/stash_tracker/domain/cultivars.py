"""Domain models for the cultivar library."""

from dataclasses import dataclass
from uuid import UUID

STRAIN_TYPES = ("Indica", "Hybrid", "Sativa")
DEFAULT_STRAIN_TYPE = "Hybrid"


@dataclass(frozen=True)
class Cultivar:
    """A named strain record in a user's library."""

    id: UUID
    user_id: UUID
    name: str
    name_lower: str
    type: str
    brand: str | None = None
    lineage: str | None = None
    thc_percent: float | None = None
    thca_percent: float | None = None
    cbd_percent: float | None = None
    effects: list[str] | None = None
    flavors: list[str] | None = None
    aroma: list[str] | None = None
    rating: float | None = None
    notes: str | None = None
    created_at: int | None = None
    updated_at: int | None = None


@dataclass(frozen=True)
class CultivarInput:
    """Attributes supplied when upserting a cultivar by name."""

    name: str
    type: str | None = None
    brand: str | None = None
    lineage: str | None = None
    thc_percent: float | None = None
    thca_percent: float | None = None
    cbd_percent: float | None = None
    effects: list[str] | None = None
    flavors: list[str] | None = None
    aroma: list[str] | None = None
    rating: float | None = None
    notes: str | None = None
