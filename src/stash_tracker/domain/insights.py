"""Domain models for aggregated history views."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class PeriodTotals:
    """Totals over a set of sessions."""

    sessions: int
    grams: float
    edible_mg: float


@dataclass(frozen=True)
class GroupTotals:
    """Per-group session count and gram total."""

    key: str
    sessions: int
    grams: float


@dataclass(frozen=True)
class DayPoint:
    """One day of a daily series."""

    day: date
    sessions: int
    grams: float


@dataclass(frozen=True)
class PurchaseMonthSummary:
    """Archived purchases finished within one local calendar month."""

    year: int
    month: int
    purchases: int
    total_grams: float
    total_cost_cents: int
    waste_grams: float


@dataclass(frozen=True)
class CultivatorRollup:
    """Consumption of one cultivar grouped by brand."""

    brand: str
    sessions: int
    grams: float
    avg_rating: float | None
    avg_potency: float | None


@dataclass(frozen=True)
class CultivarConsumption:
    """Lifetime consumption of one cultivar."""

    sessions: int
    grams: float
    avg_rating: float | None
    first_time: int | None
    last_time: int | None
    by_brand: list[CultivatorRollup]


@dataclass(frozen=True)
class Dashboard:
    """Insights for the last week and the last month."""

    week: PeriodTotals
    week_sessions: list[DayPoint]
    month: PeriodTotals
    method_mix: list[GroupTotals]
    type_mix: list[GroupTotals]
    top_cultivars: list[GroupTotals]
