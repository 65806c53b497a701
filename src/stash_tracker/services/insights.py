"""Read-side folds over sessions and archived purchases."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

from stash_tracker.domain.cultivars import DEFAULT_STRAIN_TYPE, STRAIN_TYPES
from stash_tracker.domain.entries import DEFAULT_METHOD, SMOKEABLE_METHODS, Entry
from stash_tracker.domain.insights import (
    CultivarConsumption,
    CultivatorRollup,
    Dashboard,
    DayPoint,
    GroupTotals,
    PeriodTotals,
    PurchaseMonthSummary,
)
from stash_tracker.services.entries import EntryService
from stash_tracker.services.formatting import total_potency
from stash_tracker.services.purchases import PurchaseService, resolve_finished_ms
from stash_tracker.timeutils import day_bounds_ms, local_day, month_bounds_ms, today

WEEK_DAYS = 7
MONTH_DAYS = 30
UNKNOWN = "Unknown"


def grams_of(entry: Entry) -> float:
    return entry.weight if entry.weight is not None else 0.0


def summarize(entries: Iterable[Entry]) -> PeriodTotals:
    """Return session count, grams and edible milligrams."""
    sessions = 0
    grams = 0.0
    edible_mg = 0.0
    for entry in entries:
        sessions += 1
        grams += grams_of(entry)
        edible_mg += entry.edible_mg or 0.0
    return PeriodTotals(
        sessions=sessions, grams=round(grams, 2), edible_mg=round(edible_mg, 2)
    )


def group_totals(
    entries: Iterable[Entry],
    key: Callable[[Entry], str | None],
    order: Iterable[str] | None = None,
) -> list[GroupTotals]:
    """Group sessions by ``key``.

    With ``order`` the result has exactly those groups, in that order, and
    sessions with any other key are dropped. Without it groups appear in the
    order first seen.
    """
    buckets: dict[str, list[float]] = {}
    if order is not None:
        for name in order:
            buckets[name] = [0, 0.0]
    for entry in entries:
        name = key(entry)
        if name is None:
            continue
        if name not in buckets:
            if order is not None:
                continue
            buckets[name] = [0, 0.0]
        buckets[name][0] += 1
        buckets[name][1] += grams_of(entry)
    return [
        GroupTotals(key=name, sessions=int(sessions), grams=round(grams, 2))
        for name, (sessions, grams) in buckets.items()
    ]


def method_mix(entries: Iterable[Entry]) -> list[GroupTotals]:
    """Smokeable method breakdown; edibles and archive rows fall outside it."""
    return group_totals(
        entries, lambda entry: entry.method or DEFAULT_METHOD, SMOKEABLE_METHODS
    )


def type_mix(entries: Iterable[Entry]) -> list[GroupTotals]:
    return group_totals(
        entries, lambda entry: entry.strain_type or DEFAULT_STRAIN_TYPE, STRAIN_TYPES
    )


def top_cultivars(
    entries: Iterable[Entry], limit: int, by: str = "grams"
) -> list[GroupTotals]:
    """Rank cultivars by grams or sessions.

    Ties keep the order in which cultivars were first seen.
    """
    if by not in {"grams", "sessions"}:
        raise ValueError(f"Unsupported ranking: {by}")
    groups = group_totals(
        entries, lambda entry: (entry.strain_name or "").strip() or UNKNOWN
    )
    ranked = sorted(groups, key=lambda group: getattr(group, by), reverse=True)
    return ranked[:limit]


def daily_series(
    entries: Iterable[Entry], days: int, tz: ZoneInfo, end_day: date
) -> list[DayPoint]:
    """Return one point per local day for the ``days`` days ending on ``end_day``."""
    first = end_day - timedelta(days=days - 1)
    totals = {first + timedelta(days=offset): [0, 0.0] for offset in range(days)}
    for entry in entries:
        bucket = totals.get(local_day(entry.time, tz))
        if bucket is None:
            continue
        bucket[0] += 1
        bucket[1] += grams_of(entry)
    return [
        DayPoint(day=day, sessions=int(sessions), grams=round(grams, 2))
        for day, (sessions, grams) in totals.items()
    ]


def monthly_purchase_summary(
    archives: Iterable[Entry], year: int, month: int, tz: ZoneInfo
) -> PurchaseMonthSummary:
    """Fold archived purchases finished within a local calendar month."""
    start_ms, end_ms = month_bounds_ms(year, month, tz)
    count = 0
    grams = 0.0
    cost = 0
    waste = 0.0
    for archive in archives:
        if not start_ms <= resolve_finished_ms(archive) < end_ms:
            continue
        count += 1
        snapshot = archive.purchase_snapshot
        if snapshot is not None:
            grams += snapshot.total_grams
            cost += snapshot.total_cost_cents
        waste += archive.waste_grams or 0.0
    return PurchaseMonthSummary(
        year=year,
        month=month,
        purchases=count,
        total_grams=round(grams, 2),
        total_cost_cents=cost,
        waste_grams=round(waste, 2),
    )


def cultivator_rollups(entries: Iterable[Entry]) -> list[CultivatorRollup]:
    """Group a cultivar's sessions by brand, heaviest first."""
    grouped: dict[str, list[Entry]] = {}
    for entry in entries:
        grouped.setdefault((entry.brand or "").strip() or UNKNOWN, []).append(entry)
    rollups = [
        CultivatorRollup(
            brand=brand,
            sessions=len(rows),
            grams=round(sum(grams_of(row) for row in rows), 2),
            avg_rating=_average(row.rating for row in rows),
            avg_potency=_average(
                total_potency(row.thc_percent, row.thca_percent) for row in rows
            ),
        )
        for brand, rows in grouped.items()
    ]
    return sorted(rollups, key=lambda rollup: rollup.grams, reverse=True)


def _average(values: Iterable[float | None]) -> float | None:
    known = [value for value in values if value is not None]
    if not known:
        return None
    return round(sum(known) / len(known), 2)


@dataclass
class InsightsService:
    """Fetch sessions and archives and fold them for the insight views."""

    entry_service: EntryService
    purchase_service: PurchaseService
    top_limit: int = 5

    def get_day(
        self, user_id: UUID, day: date, tz: ZoneInfo
    ) -> tuple[PeriodTotals, list[Entry]]:
        entries = self.entry_service.list_for_day(user_id, day, tz)
        return summarize(entries), entries

    def get_dashboard(
        self, user_id: UUID, tz: ZoneInfo, end_day: date | None = None
    ) -> Dashboard:
        """Return the 7-day and 30-day insight panels."""
        last = end_day or today(tz)
        _, end_ms = day_bounds_ms(last, tz)
        month_start, _ = day_bounds_ms(last - timedelta(days=MONTH_DAYS - 1), tz)
        week_start, _ = day_bounds_ms(last - timedelta(days=WEEK_DAYS - 1), tz)

        month = self.entry_service.list_between(user_id, month_start, end_ms)
        week = [entry for entry in month if entry.time >= week_start]
        return Dashboard(
            week=summarize(week),
            week_sessions=daily_series(week, WEEK_DAYS, tz, last),
            month=summarize(month),
            method_mix=method_mix(month),
            type_mix=type_mix(month),
            top_cultivars=top_cultivars(month, self.top_limit),
        )

    def get_purchase_month(
        self, user_id: UUID, year: int, month: int, tz: ZoneInfo
    ) -> PurchaseMonthSummary:
        archives = self.purchase_service.list_archived(user_id)
        return monthly_purchase_summary(archives, year, month, tz)

    def get_cultivar_consumption(
        self, user_id: UUID, name: str
    ) -> tuple[CultivarConsumption, list[Entry]]:
        """Return lifetime totals and the sessions of one cultivar."""
        entries = self.entry_service.list_for_strain(
            user_id, name.strip().lower(), name.strip()
        )
        totals = summarize(entries)
        times = [entry.time for entry in entries]
        consumption = CultivarConsumption(
            sessions=totals.sessions,
            grams=totals.grams,
            avg_rating=_average(entry.rating for entry in entries),
            first_time=min(times) if times else None,
            last_time=max(times) if times else None,
            by_brand=cultivator_rollups(entries),
        )
        return consumption, entries
