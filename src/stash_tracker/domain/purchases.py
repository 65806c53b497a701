"""Domain models for stash purchases."""

from dataclasses import dataclass
from uuid import UUID

ACTIVE = "active"
DEPLETED = "depleted"

CONCENTRATE_FORMS = {
    "Cured": ("Badder", "Sugar", "Diamonds and Sauce", "Crumble"),
    "Live Resin": ("Badder", "Sugar", "Diamonds and Sauce"),
    "Live Rosin": ("Hash Rosin", "Temple Ball", "Jam", "Full Melt", "Bubble Hash"),
}


@dataclass(frozen=True)
class Purchase:
    """An inventory lot of a cultivar."""

    id: UUID
    user_id: UUID
    strain_name: str
    strain_name_lower: str
    strain_type: str
    total_grams: float
    remaining_grams: float
    total_cost_cents: int
    purchase_date: str | None
    status: str | None
    updated_at: int | None
    lineage: str | None = None
    brand: str | None = None
    thc_percent: float | None = None
    thca_percent: float | None = None
    smokeable_kind: str | None = None
    concentrate_category: str | None = None
    concentrate_form: str | None = None
    waste_grams: float | None = None
    waste_percent: float | None = None
    created_at: int | None = None

    @property
    def effective_status(self) -> str:
        """Return the stored status, inferring it from remaining grams when unset."""
        if self.status in {ACTIVE, DEPLETED}:
            return self.status
        return ACTIVE if self.remaining_grams > 0 else DEPLETED

    @property
    def display_remaining_grams(self) -> float:
        """Remaining grams clamped at zero for display."""
        return max(0.0, self.remaining_grams)


@dataclass(frozen=True)
class PurchaseInput:
    """Fields accepted when recording a new purchase."""

    strain_name: str
    grams: float | str
    strain_type: str = "Hybrid"
    lineage: str | None = None
    brand: str | None = None
    thc_percent: float | None = None
    thca_percent: float | None = None
    dollars: float | None = None
    purchase_date: str | None = None
    smokeable_kind: str | None = None
    concentrate_category: str | None = None
    concentrate_form: str | None = None


@dataclass(frozen=True)
class FinishResult:
    """Outcome of finishing and archiving a purchase."""

    archived_entry_id: UUID
    purchase_finished_date: str
    removed_purchase_id: UUID
    waste_grams: float | None
    waste_percent: float | None


@dataclass(frozen=True)
class PurchaseUpdate:
    """Manual edit of a purchase. Fields left as None are not touched."""

    strain_name: str | None = None
    strain_type: str | None = None
    lineage: str | None = None
    brand: str | None = None
    thc_percent: float | None = None
    thca_percent: float | None = None
    grams: float | str | None = None
    remaining_grams: float | str | None = None
    dollars: float | None = None
    purchase_date: str | None = None
    smokeable_kind: str | None = None
    concentrate_category: str | None = None
    concentrate_form: str | None = None
