"""Consumption session logging service."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol
from uuid import UUID
from zoneinfo import ZoneInfo

from stash_tracker.domain.cultivars import DEFAULT_STRAIN_TYPE, CultivarInput
from stash_tracker.domain.entries import (
    DEFAULT_METHOD,
    EDIBLE_METHOD,
    Entry,
    EntryInput,
)
from stash_tracker.services.cultivars import CultivarService
from stash_tracker.services.live import ENTRIES, ChangeFeed, Subscription
from stash_tracker.services.normalize import (
    clean_text,
    normalize_edible_category,
    normalize_strain_type,
    parse_milligrams,
    parse_weight,
    strip_none,
    to_list,
    to_number,
)
from stash_tracker.timeutils import day_bounds_ms, now_ms

logger = logging.getLogger(__name__)

RECENT_SCAN_LIMIT = 200

_EDIBLE_FIELDS = ("edible_name", "edible_mg", "mg", "edible_type")


class EntryRepository(Protocol):
    """Persistence interface for session entries."""

    def create_entry(self, user_id: UUID, payload: dict[str, object]) -> Entry:
        """Create an entry and return it."""

    def get_entry(self, user_id: UUID, entry_id: UUID) -> Entry | None:
        """Return an entry by id, if present."""

    def update_entry(
        self, user_id: UUID, entry_id: UUID, payload: dict[str, object]
    ) -> None:
        """Patch an entry."""

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        """Delete an entry."""

    def list_entries(
        self, user_id: UUID, start_ms: int | None = None, end_ms: int | None = None
    ) -> list[Entry]:
        """Return entries with ``start_ms <= time < end_ms``, newest first."""

    def list_entries_by(self, user_id: UUID, field: str, value: object) -> list[Entry]:
        """Return entries whose ``field`` equals ``value``."""

    def list_recent_entries(self, user_id: UUID, limit: int) -> list[Entry]:
        """Return the most recent entries, newest first."""


@dataclass
class EntryService:
    """Create, edit and query consumption sessions."""

    repository: EntryRepository
    cultivar_service: CultivarService
    changes: ChangeFeed = field(default_factory=ChangeFeed)

    def create_entry(
        self, user_id: UUID, data: EntryInput, purchase_id: UUID | None = None
    ) -> Entry:
        """Normalize and persist a new session.

        Smokeable sessions naming a cultivar upsert it first; an upsert failure
        leaves the entry without a cultivar link.
        """
        payload = self.build_payload(user_id, data)
        if purchase_id is not None:
            payload["purchase_id"] = str(purchase_id)
        entry = self.repository.create_entry(user_id, payload)
        self.changes.publish(user_id, ENTRIES)
        return entry

    def build_payload(self, user_id: UUID, data: EntryInput) -> dict[str, object]:
        """Return the normalized document for a new session."""
        method = (data.method or "").strip()
        is_edible = method.lower() == "edible" or data.is_edible_session is True
        weight, edible_mg = session_amounts(data, is_edible)
        strain_name = clean_text(data.strain_name)
        supplied_type = normalize_strain_type(data.strain_type)
        strain_type = supplied_type or DEFAULT_STRAIN_TYPE
        brand = clean_text(data.brand)
        lineage = clean_text(data.lineage)
        effects = to_list(data.effects)
        flavors = to_list(data.flavors)
        aroma = to_list(data.aroma)
        rating = to_number(data.rating)
        notes = clean_text(data.notes)
        thc_percent = to_number(data.thc_percent)
        thca_percent = to_number(data.thca_percent)
        cbd_percent = to_number(data.cbd_percent)

        strain_id = data.strain_id
        if not is_edible and strain_name:
            strain_id = (
                self.cultivar_service.try_upsert(
                    user_id,
                    CultivarInput(
                        name=strain_name,
                        type=supplied_type,
                        brand=brand,
                        lineage=lineage,
                        thc_percent=thc_percent,
                        thca_percent=thca_percent,
                        cbd_percent=cbd_percent,
                        effects=effects,
                        flavors=flavors,
                        aroma=aroma,
                        rating=rating,
                        notes=notes,
                    ),
                )
                or strain_id
            )

        edible_category = normalize_edible_category(data.edible_type)
        timestamp = now_ms()
        return strip_none(
            {
                "time": data.time if isinstance(data.time, int) else timestamp,
                "method": method or (EDIBLE_METHOD if is_edible else DEFAULT_METHOD),
                "strain_id": str(strain_id) if strain_id and not is_edible else None,
                "strain_name": strain_name if not is_edible else None,
                "strain_name_lower": strain_name.lower()
                if strain_name and not is_edible
                else None,
                "strain_type": strain_type,
                "brand": brand,
                "brand_lower": brand.lower() if brand else None,
                "lineage": lineage,
                "thc_percent": thc_percent,
                "thca_percent": thca_percent,
                "cbd_percent": cbd_percent,
                "effects": effects,
                "flavors": flavors,
                "aroma": aroma,
                "rating": rating,
                "notes": notes,
                "mood_before": clean_text(data.mood_before),
                "mood_after": clean_text(data.mood_after),
                "weight": weight,
                "edible_mg": edible_mg,
                "is_edible_session": True if is_edible else None,
                "edible_name": (clean_text(data.edible_name) or strain_name)
                if is_edible
                else None,
                "edible_type": (edible_category or "Other") if is_edible else None,
                "created_at": timestamp,
                "updated_at": timestamp,
            }
        )

    def update_entry(self, user_id: UUID, entry_id: UUID, patch: EntryInput) -> None:
        """Apply a partial edit. Fields left as None are not touched."""
        method = (patch.method or "").strip()
        is_edible = (
            method.lower() == "edible"
            or patch.is_edible_session is True
            or any(getattr(patch, name) is not None for name in _EDIBLE_FIELDS)
        )
        strain_name = None if is_edible else clean_text(patch.strain_name)
        strain_type = normalize_strain_type(patch.strain_type)
        brand = None if is_edible else clean_text(patch.brand)
        lineage = None if is_edible else clean_text(patch.lineage)
        thc_percent = None if is_edible else to_number(patch.thc_percent)
        thca_percent = None if is_edible else to_number(patch.thca_percent)
        cbd_percent = None if is_edible else to_number(patch.cbd_percent)
        flavors = None if is_edible else to_list(patch.flavors)
        aroma = None if is_edible else to_list(patch.aroma)
        effects = to_list(patch.effects)
        rating = to_number(patch.rating)
        notes = clean_text(patch.notes)
        edible_category = (
            normalize_edible_category(patch.edible_type) if is_edible else None
        )
        weight, edible_mg = session_amounts(patch, is_edible)

        payload = strip_none(
            {
                "time": patch.time,
                "method": method or None,
                "weight": weight,
                "strain_name": strain_name,
                "strain_name_lower": strain_name.lower() if strain_name else None,
                "strain_type": strain_type,
                "brand": brand,
                "brand_lower": brand.lower() if brand else None,
                "lineage": lineage,
                "thc_percent": thc_percent,
                "thca_percent": thca_percent,
                "cbd_percent": cbd_percent,
                "effects": effects,
                "flavors": flavors,
                "aroma": aroma,
                "rating": rating,
                "notes": notes,
                "mood_before": clean_text(patch.mood_before),
                "mood_after": clean_text(patch.mood_after),
                "is_edible_session": True if is_edible else None,
                "edible_name": clean_text(patch.edible_name) if is_edible else None,
                "edible_type": edible_category,
                "edible_mg": edible_mg,
                "updated_at": now_ms(),
            }
        )
        self.repository.update_entry(user_id, entry_id, payload)
        self.changes.publish(user_id, ENTRIES)

        touches_cultivar = not is_edible and any(
            value is not None
            for value in (
                strain_name,
                strain_type,
                brand,
                lineage,
                thc_percent,
                thca_percent,
                cbd_percent,
                effects,
                flavors,
                aroma,
                rating,
                notes,
            )
        )
        if not touches_cultivar:
            return
        name = strain_name
        if name is None:
            current = self.repository.get_entry(user_id, entry_id)
            name = current.strain_name if current else None
        if not name:
            return
        self.cultivar_service.try_upsert(
            user_id,
            CultivarInput(
                name=name,
                type=strain_type,
                brand=brand,
                lineage=lineage,
                thc_percent=thc_percent,
                thca_percent=thca_percent,
                cbd_percent=cbd_percent,
                effects=effects,
                flavors=flavors,
                aroma=aroma,
                rating=rating,
                notes=notes,
            ),
        )

    def get_entry(self, user_id: UUID, entry_id: UUID) -> Entry | None:
        return self.repository.get_entry(user_id, entry_id)

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        self.repository.delete_entry(user_id, entry_id)
        self.changes.publish(user_id, ENTRIES)

    def list_between(self, user_id: UUID, start_ms: int, end_ms: int) -> list[Entry]:
        """Return daily-view sessions in ``[start_ms, end_ms)``, newest first."""
        return _visible(self.repository.list_entries(user_id, start_ms, end_ms))

    def list_for_day(self, user_id: UUID, day: date, tz: ZoneInfo) -> list[Entry]:
        """Return the sessions of one local calendar day."""
        start_ms, end_ms = day_bounds_ms(day, tz)
        return self.list_between(user_id, start_ms, end_ms)

    def list_all(self, user_id: UUID) -> list[Entry]:
        return _visible(self.repository.list_entries(user_id))

    def list_for_strain(
        self, user_id: UUID, name_lower: str, display_name: str | None = None
    ) -> list[Entry]:
        """Return sessions of a cultivar matched by lowercase key or display name.

        Falls back to scanning recent sessions when neither key matches, for
        rows written before the lowercase key existed.
        """
        merged: dict[UUID, Entry] = {}
        for entry in self.repository.list_entries_by(
            user_id, "strain_name_lower", name_lower
        ):
            merged[entry.id] = entry
        if display_name:
            for entry in self.repository.list_entries_by(
                user_id, "strain_name", display_name
            ):
                merged[entry.id] = entry

        if not merged:
            for entry in self.repository.list_recent_entries(
                user_id, RECENT_SCAN_LIMIT
            ):
                candidate = (entry.strain_name_lower or entry.strain_name or "").strip()
                if candidate and candidate.lower() == name_lower:
                    merged[entry.id] = entry

        rows = _visible(list(merged.values()))
        return sorted(rows, key=lambda entry: entry.time, reverse=True)

    def watch_day(
        self,
        user_id: UUID,
        day: date,
        tz: ZoneInfo,
        callback: Callable[[list[Entry]], None],
    ) -> Subscription:
        """Deliver the day's sessions now and after every entry write."""

        def refresh(_collection: str) -> None:
            callback(self.list_for_day(user_id, day, tz))

        subscription = self.changes.subscribe(user_id, ENTRIES, refresh)
        refresh(ENTRIES)
        return subscription


def _visible(entries: list[Entry]) -> list[Entry]:
    return [entry for entry in entries if not entry.is_archive]


def _first_given(*values: object) -> object:
    return next((value for value in values if value is not None), None)


def session_amounts(
    data: EntryInput, is_edible: bool
) -> tuple[float | None, float | None]:
    """Return ``(grams, milligrams)`` for a session, rejecting negative amounts."""
    if is_edible:
        grams = None
        milligrams = parse_milligrams(
            _first_given(data.edible_mg, data.dose, data.mg)
        )
    else:
        grams = parse_weight(_first_given(data.weight, data.dose))
        milligrams = None
    if grams is not None and grams < 0:
        raise ValueError(f"Session weight cannot be negative: {grams}")
    if milligrams is not None and milligrams < 0:
        raise ValueError(f"Edible dose cannot be negative: {milligrams}")
    return grams, milligrams
