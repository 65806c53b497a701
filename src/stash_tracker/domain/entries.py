"""Domain models for consumption sessions."""

from dataclasses import dataclass
from uuid import UUID

SMOKEABLE_METHODS = ("Pre-Roll", "Bong", "Pipe", "Vape", "Dab")
EDIBLE_METHOD = "Edible"
PURCHASE_METHOD = "Purchase"
JOURNAL_METHOD = "Journal"
DEFAULT_METHOD = "Pre-Roll"

PURCHASE_ARCHIVE = "purchase-archive"
LEGACY_ARCHIVE_METHODS = frozenset({PURCHASE_METHOD, JOURNAL_METHOD})


@dataclass(frozen=True)
class PurchaseSnapshot:
    """Quantity and cost of a purchase at the time it was finished."""

    total_grams: float
    remaining_grams: float
    total_cost_cents: int
    purchase_date: str | None = None


@dataclass(frozen=True)
class Entry:
    """A logged consumption session, or a purchase archive row."""

    id: UUID
    user_id: UUID
    time: int
    method: str
    strain_type: str = "Hybrid"
    strain_id: UUID | None = None
    strain_name: str | None = None
    strain_name_lower: str | None = None
    brand: str | None = None
    brand_lower: str | None = None
    lineage: str | None = None
    thc_percent: float | None = None
    thca_percent: float | None = None
    cbd_percent: float | None = None
    weight: float | None = None
    mood_before: str | None = None
    mood_after: str | None = None
    effects: list[str] | None = None
    flavors: list[str] | None = None
    aroma: list[str] | None = None
    rating: float | None = None
    notes: str | None = None
    is_edible_session: bool = False
    edible_name: str | None = None
    edible_type: str | None = None
    edible_mg: float | None = None
    purchase_id: UUID | None = None
    journal_type: str | None = None
    hidden_from_daily: bool = False
    purchase_made_date: str | None = None
    purchase_finished_date: str | None = None
    purchase_finished_at_ms: int | None = None
    finished_date: str | None = None
    purchase_snapshot: PurchaseSnapshot | None = None
    waste_grams: float | None = None
    waste_percent: float | None = None
    created_at: int | None = None
    updated_at: int | None = None

    @property
    def is_archive(self) -> bool:
        """Return True for rows kept out of the daily views."""
        return self.journal_type == PURCHASE_ARCHIVE or self.hidden_from_daily

    @property
    def is_legacy_archive(self) -> bool:
        """Return True for archive rows tagged only by the older scheme."""
        return self.hidden_from_daily and self.method in LEGACY_ARCHIVE_METHODS

    @property
    def is_purchase_archive(self) -> bool:
        """Return True for finished-purchase rows under either tagging scheme."""
        return self.journal_type == PURCHASE_ARCHIVE or self.is_legacy_archive


@dataclass(frozen=True)
class EntryInput:
    """Raw session fields as submitted by the logging and edit forms.

    Values are loosely typed because the forms send numbers, unit-suffixed
    strings or comma-separated lists; the entry service normalizes them.
    """

    method: str | None = None
    time: int | None = None
    strain_id: UUID | None = None
    strain_name: str | None = None
    strain_type: str | None = None
    brand: str | None = None
    lineage: str | None = None
    thc_percent: float | str | None = None
    thca_percent: float | str | None = None
    cbd_percent: float | str | None = None
    weight: float | str | None = None
    dose: float | str | None = None
    mood_before: str | None = None
    mood_after: str | None = None
    effects: list[str] | str | None = None
    flavors: list[str] | str | None = None
    aroma: list[str] | str | None = None
    rating: float | str | None = None
    notes: str | None = None
    is_edible_session: bool | None = None
    edible_name: str | None = None
    edible_type: str | None = None
    edible_mg: float | str | None = None
    mg: float | str | None = None
