"""Stash inventory: purchases, session deduction and finish-and-archive."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Protocol
from uuid import UUID

from stash_tracker.domain.cultivars import DEFAULT_STRAIN_TYPE, CultivarInput
from stash_tracker.domain.entries import (
    PURCHASE_ARCHIVE,
    PURCHASE_METHOD,
    Entry,
    EntryInput,
)
from stash_tracker.domain.purchases import (
    ACTIVE,
    DEPLETED,
    FinishResult,
    Purchase,
    PurchaseInput,
    PurchaseUpdate,
)
from stash_tracker.services.cultivars import CultivarService
from stash_tracker.services.entries import EntryService
from stash_tracker.services.live import ENTRIES, PURCHASES, ChangeFeed, Subscription
from stash_tracker.services.normalize import (
    clean_text,
    normalize_concentrate_category,
    normalize_concentrate_form,
    normalize_smokeable_kind,
    normalize_strain_type,
    parse_weight,
    snap_purchase_grams,
    strip_none,
    to_cents,
    to_number,
)
from stash_tracker.timeutils import now_ms, parse_iso_ms, utc_date_iso

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
TRANSACTION_ATTEMPTS = 5
CONCENTRATE = "Concentrate"
FLOWER = "Flower"


class PurchaseNotFoundError(LookupError):
    """Raised when a purchase document does not exist."""


class PurchaseConflictError(RuntimeError):
    """Raised when concurrent writers keep changing a purchase mid-update."""


class PurchaseRepository(Protocol):
    """Persistence interface for purchases."""

    def create_purchase(self, user_id: UUID, payload: dict[str, object]) -> Purchase:
        """Create a purchase and return it."""

    def get_purchase(self, user_id: UUID, purchase_id: UUID) -> Purchase | None:
        """Return a purchase by id, if present."""

    def list_purchases(self, user_id: UUID) -> list[Purchase]:
        """Return purchases ordered by most recent update."""

    def list_purchases_for_strain(
        self, user_id: UUID, strain_name_lower: str
    ) -> list[Purchase]:
        """Return purchases of a cultivar by lowercase name."""

    def update_purchase(
        self, user_id: UUID, purchase_id: UUID, payload: dict[str, object]
    ) -> None:
        """Patch a purchase unconditionally."""

    def compare_and_set(
        self,
        user_id: UUID,
        purchase_id: UUID,
        expected_updated_at: int | None,
        payload: dict[str, object],
    ) -> bool:
        """Patch a purchase only if ``updated_at`` still equals the expected value."""

    def delete_purchase(self, user_id: UUID, purchase_id: UUID) -> None:
        """Delete a purchase."""


@dataclass
class PurchaseService:
    """Purchase inventory and the workflows that consume it."""

    repository: PurchaseRepository
    entry_service: EntryService
    cultivar_service: CultivarService
    changes: ChangeFeed = field(default_factory=ChangeFeed)

    def create_purchase(self, user_id: UUID, data: PurchaseInput) -> Purchase:
        """Record a purchase with its full weight remaining."""
        strain_name = data.strain_name.strip()
        if not strain_name:
            raise ValueError("Cultivar name is required")
        grams = parse_weight(data.grams)
        if grams is None or grams <= 0:
            raise ValueError(f"Invalid grams value: {data.grams}")

        strain_type = normalize_strain_type(data.strain_type) or DEFAULT_STRAIN_TYPE
        self.cultivar_service.try_upsert(
            user_id,
            CultivarInput(
                name=strain_name,
                type=strain_type,
                brand=data.brand,
                lineage=data.lineage,
                thc_percent=data.thc_percent,
                thca_percent=data.thca_percent,
            ),
        )

        kind = normalize_smokeable_kind(data.smokeable_kind) or FLOWER
        total = grams if kind == CONCENTRATE else snap_purchase_grams(grams)
        timestamp = now_ms()
        payload = strip_none(
            {
                "strain_name": strain_name,
                "strain_name_lower": strain_name.lower(),
                "strain_type": strain_type,
                "lineage": clean_text(data.lineage),
                "brand": clean_text(data.brand),
                "thc_percent": to_number(data.thc_percent),
                "thca_percent": to_number(data.thca_percent),
                "total_grams": total,
                "remaining_grams": total,
                "total_cost_cents": to_cents(data.dollars) or 0,
                "purchase_date": data.purchase_date or utc_date_iso(timestamp),
                "status": ACTIVE,
                **_product_kind(
                    kind, data.concentrate_category, data.concentrate_form
                ),
                "created_at": timestamp,
                "updated_at": timestamp,
            }
        )
        purchase = self.repository.create_purchase(user_id, payload)
        logger.info("Recorded purchase %s (%s g)", purchase.id, total)
        self.changes.publish(user_id, PURCHASES)
        return purchase

    def update_purchase(
        self, user_id: UUID, purchase_id: UUID, patch: PurchaseUpdate
    ) -> Purchase:
        """Apply a manual edit.

        Changing the total keeps the consumed amount, so remaining moves by the
        same delta unless an explicit remaining value is supplied.
        """
        current = self.repository.get_purchase(user_id, purchase_id)
        if current is None:
            raise PurchaseNotFoundError(str(purchase_id))

        strain_name = clean_text(patch.strain_name)
        total = parse_weight(patch.grams)
        if total is not None and total <= 0:
            raise ValueError("Total amount must be a number greater than 0.")
        remaining = parse_weight(patch.remaining_grams)
        if remaining is None and total is not None:
            remaining = round(current.remaining_grams + total - current.total_grams, 2)

        payload = strip_none(
            {
                "strain_name": strain_name,
                "strain_name_lower": strain_name.lower() if strain_name else None,
                "strain_type": normalize_strain_type(patch.strain_type),
                "lineage": clean_text(patch.lineage),
                "brand": clean_text(patch.brand),
                "thc_percent": to_number(patch.thc_percent),
                "thca_percent": to_number(patch.thca_percent),
                "total_grams": total,
                "remaining_grams": remaining,
                "status": None if remaining is None else _status_for(remaining),
                "total_cost_cents": to_cents(patch.dollars),
                "purchase_date": clean_text(patch.purchase_date),
                "updated_at": _next_stamp(current),
            }
        )
        kind = normalize_smokeable_kind(patch.smokeable_kind)
        if kind is not None:
            payload.update(
                _product_kind(kind, patch.concentrate_category, patch.concentrate_form)
            )
            if kind == FLOWER:
                payload["concentrate_category"] = None
                payload["concentrate_form"] = None

        self.repository.update_purchase(user_id, purchase_id, payload)
        self.changes.publish(user_id, PURCHASES)
        if strain_name:
            self.cultivar_service.try_upsert(
                user_id,
                CultivarInput(
                    name=strain_name,
                    type=payload.get("strain_type") or current.strain_type,
                    brand=patch.brand,
                    lineage=patch.lineage,
                    thc_percent=patch.thc_percent,
                    thca_percent=patch.thca_percent,
                ),
            )
        return replace(current, **payload)

    def add_grams(self, user_id: UUID, purchase_id: UUID, grams: float) -> Purchase:
        """Top up a purchase by a snapped amount."""
        if not isinstance(grams, int | float) or grams <= 0:
            raise ValueError("Invalid add grams amount")
        added = snap_purchase_grams(grams)

        def top_up(purchase: Purchase) -> dict[str, object]:
            remaining = round(purchase.remaining_grams + added, 2)
            return {
                "total_grams": round(purchase.total_grams + added, 2),
                "remaining_grams": remaining,
                "status": _status_for(remaining),
                "updated_at": _next_stamp(purchase),
            }

        updated = self._transact(user_id, purchase_id, top_up)
        self.changes.publish(user_id, PURCHASES)
        return updated

    def get_purchase(self, user_id: UUID, purchase_id: UUID) -> Purchase | None:
        return self.repository.get_purchase(user_id, purchase_id)

    def delete_purchase(self, user_id: UUID, purchase_id: UUID) -> None:
        """Remove a purchase without archiving it; linked sessions are kept."""
        self.repository.delete_purchase(user_id, purchase_id)
        self.changes.publish(user_id, PURCHASES)

    def list_purchases(self, user_id: UUID) -> list[Purchase]:
        return self.repository.list_purchases(user_id)

    def list_active_for_strain(self, user_id: UUID, strain_name: str) -> list[Purchase]:
        """Return deductible purchases of a cultivar, most recently updated first."""
        name_lower = strain_name.strip().lower()
        if not name_lower:
            return []
        candidates = [
            purchase
            for purchase in self.repository.list_purchases_for_strain(
                user_id, name_lower
            )
            if _is_deductible(purchase)
        ]
        return sorted(
            candidates, key=lambda purchase: purchase.updated_at or 0, reverse=True
        )

    def find_deduction_candidate(
        self, user_id: UUID, strain_name: str
    ) -> Purchase | None:
        """Pick the purchase a session of ``strain_name`` draws from."""
        candidates = self.list_active_for_strain(user_id, strain_name)
        return candidates[0] if candidates else None

    def create_entry_auto_deduct(self, user_id: UUID, data: EntryInput) -> Entry:
        """Log a session, deducting its weight from a matching active purchase.

        Sessions without a match are stored unlinked. When the deduction itself
        cannot be applied the session is still stored, unlinked.
        """
        method = (data.method or "").strip().lower()
        if method == "edible" or data.is_edible_session is True:
            return self.entry_service.create_entry(user_id, data)
        strain_name = clean_text(data.strain_name)
        grams = _session_grams(data)
        if not strain_name or grams is None or grams <= 0:
            return self.entry_service.create_entry(user_id, data)

        candidate = self.find_deduction_candidate(user_id, strain_name)
        if candidate is None:
            return self.entry_service.create_entry(user_id, data)

        try:
            return self.create_entry_with_deduction(user_id, candidate.id, data)
        except (PurchaseNotFoundError, PurchaseConflictError):
            logger.warning(
                "Deduction from purchase %s failed; storing session unlinked",
                candidate.id,
                exc_info=True,
            )
            return self.entry_service.create_entry(user_id, data)

    def create_entry_with_deduction(
        self, user_id: UUID, purchase_id: UUID, data: EntryInput
    ) -> Entry:
        """Decrement ``purchase_id`` by the session weight and link the session.

        Remaining grams are not floored here; concurrent deductions may take a
        purchase below zero and readers clamp for display.
        """
        grams = _session_grams(data)
        if grams is None or grams <= 0:
            raise ValueError(
                "Session weight (grams) is required to deduct from a purchase."
            )

        def deduct(purchase: Purchase) -> dict[str, object]:
            remaining = round(purchase.remaining_grams - grams, 2)
            return {
                "remaining_grams": remaining,
                "status": _status_for(remaining),
                "updated_at": _next_stamp(purchase),
            }

        self._transact(user_id, purchase_id, deduct)
        try:
            entry = self.entry_service.create_entry(
                user_id, data, purchase_id=purchase_id
            )
        except Exception:
            logger.exception(
                "Session write failed after deducting %s g from %s; restoring",
                grams,
                purchase_id,
            )
            self._restore(user_id, purchase_id, grams)
            raise
        self.changes.publish(user_id, PURCHASES)
        return entry

    def finish_and_archive(self, user_id: UUID, purchase_id: UUID) -> FinishResult:
        """Mark a purchase finished, archive a snapshot entry and delete it.

        Each step checks what earlier runs left behind, so calling this again
        after a partial failure resumes instead of archiving twice.
        """
        if self.repository.get_purchase(user_id, purchase_id) is None:
            existing = self._find_archive(user_id, purchase_id)
            if existing is not None:
                return _result_from_archive(existing, purchase_id)
            raise PurchaseNotFoundError(str(purchase_id))

        depleted = self._transact(user_id, purchase_id, _finish_changes)
        self.changes.publish(user_id, PURCHASES)

        try:
            archive = self._find_archive(user_id, purchase_id)
            if archive is None:
                archive = self.entry_service.repository.create_entry(
                    user_id, _archive_payload(depleted, now_ms())
                )
                self.changes.publish(user_id, ENTRIES)
            self.repository.delete_purchase(user_id, purchase_id)
        except Exception:
            logger.exception(
                "Purchase %s is depleted but not fully archived; finish again to resume",
                purchase_id,
            )
            raise
        self.changes.publish(user_id, PURCHASES)
        logger.info("Archived purchase %s as entry %s", purchase_id, archive.id)
        return _result_from_archive(archive, purchase_id)

    def list_archived(self, user_id: UUID) -> list[Entry]:
        """Return archive rows under both tagging schemes, newest finish first."""
        entries = self.entry_service.repository
        modern = entries.list_entries_by(user_id, "journal_type", PURCHASE_ARCHIVE)
        legacy = [
            entry
            for entry in entries.list_entries_by(user_id, "hidden_from_daily", True)
            if entry.is_legacy_archive
        ]
        merged: dict[UUID, Entry] = {entry.id: entry for entry in legacy}
        merged.update({entry.id: entry for entry in modern})
        return sorted(merged.values(), key=resolve_finished_ms, reverse=True)

    def list_purchase_history(
        self, user_id: UUID, days: int, now: int | None = None
    ) -> list[Entry]:
        """Return archives finished within the last ``days`` days."""
        cutoff = (now if now is not None else now_ms()) - days * DAY_MS
        return [
            entry
            for entry in self.list_archived(user_id)
            if resolve_finished_ms(entry) >= cutoff
        ]

    def list_archived_for_strain(self, user_id: UUID, name_lower: str) -> list[Entry]:
        return [
            entry
            for entry in self.list_archived(user_id)
            if (entry.strain_name_lower or (entry.strain_name or "").lower())
            == name_lower
        ]

    def remove_archive_entry(self, user_id: UUID, entry_id: UUID) -> bool:
        """Delete an archive row. Returns False when it is not an archive row."""
        entry = self.entry_service.get_entry(user_id, entry_id)
        if entry is None or not entry.is_purchase_archive:
            return False
        self.entry_service.delete_entry(user_id, entry_id)
        return True

    def watch_archives(
        self,
        user_id: UUID,
        days: int,
        callback: Callable[[list[Entry]], None],
    ) -> Subscription:
        """Deliver purchase history now and after every entry write."""

        def refresh(_collection: str) -> None:
            callback(self.list_purchase_history(user_id, days))

        subscription = self.changes.subscribe(user_id, ENTRIES, refresh)
        refresh(ENTRIES)
        return subscription

    def _transact(
        self,
        user_id: UUID,
        purchase_id: UUID,
        changes: Callable[[Purchase], dict[str, object] | None],
    ) -> Purchase:
        """Read-modify-write a purchase guarded by its ``updated_at`` stamp."""
        for attempt in range(1, TRANSACTION_ATTEMPTS + 1):
            purchase = self.repository.get_purchase(user_id, purchase_id)
            if purchase is None:
                raise PurchaseNotFoundError(str(purchase_id))
            payload = changes(purchase)
            if not payload:
                return purchase
            if self.repository.compare_and_set(
                user_id, purchase_id, purchase.updated_at, payload
            ):
                return replace(purchase, **payload)
            logger.info(
                "Purchase %s changed concurrently (attempt %s)", purchase_id, attempt
            )
        raise PurchaseConflictError(str(purchase_id))

    def _restore(self, user_id: UUID, purchase_id: UUID, grams: float) -> None:
        def give_back(purchase: Purchase) -> dict[str, object]:
            remaining = round(purchase.remaining_grams + grams, 2)
            return {
                "remaining_grams": remaining,
                "status": _status_for(remaining),
                "updated_at": _next_stamp(purchase),
            }

        try:
            self._transact(user_id, purchase_id, give_back)
        except Exception:
            logger.exception(
                "Could not restore %s g to purchase %s", grams, purchase_id
            )

    def _find_archive(self, user_id: UUID, purchase_id: UUID) -> Entry | None:
        for entry in self.entry_service.repository.list_entries_by(
            user_id, "purchase_id", purchase_id
        ):
            if entry.is_purchase_archive:
                return entry
        return None


def resolve_finished_ms(entry: Entry) -> int:
    """Return when an archived purchase was finished.

    Prefers the stored millisecond stamp, then the ISO finish date, then the
    legacy finish date, then the row's own time.
    """
    if entry.purchase_finished_at_ms is not None:
        return entry.purchase_finished_at_ms
    for value in (entry.purchase_finished_date, entry.finished_date):
        parsed = parse_iso_ms(value)
        if parsed is not None:
            return parsed
    return entry.time


def _finish_changes(purchase: Purchase) -> dict[str, object] | None:
    changes: dict[str, object] = {}
    if purchase.remaining_grams > 0 and purchase.total_grams > 0:
        percent = purchase.remaining_grams / purchase.total_grams * 100
        changes["waste_grams"] = round(purchase.remaining_grams, 2)
        changes["waste_percent"] = round(min(100.0, max(0.0, percent)), 2)
    if purchase.remaining_grams != 0 or purchase.status != DEPLETED:
        changes["remaining_grams"] = 0.0
        changes["status"] = DEPLETED
    if changes:
        changes["updated_at"] = _next_stamp(purchase)
    return changes or None


def _archive_payload(purchase: Purchase, finished_ms: int) -> dict[str, object]:
    title = purchase.strain_name or "Untitled"
    return strip_none(
        {
            "time": finished_ms,
            "method": PURCHASE_METHOD,
            "journal_type": PURCHASE_ARCHIVE,
            "hidden_from_daily": True,
            "purchase_made_date": purchase.purchase_date,
            "purchase_finished_date": utc_date_iso(finished_ms),
            "purchase_finished_at_ms": finished_ms,
            "strain_name": title,
            "strain_name_lower": title.lower(),
            "strain_type": purchase.strain_type or DEFAULT_STRAIN_TYPE,
            "brand": purchase.brand,
            "brand_lower": purchase.brand.lower() if purchase.brand else None,
            "lineage": purchase.lineage,
            "thc_percent": purchase.thc_percent,
            "thca_percent": purchase.thca_percent,
            "purchase_id": str(purchase.id),
            "purchase_snapshot": {
                "total_grams": purchase.total_grams,
                "remaining_grams": purchase.waste_grams or 0.0,
                "total_cost_cents": purchase.total_cost_cents,
                "purchase_date": purchase.purchase_date,
            },
            "waste_grams": purchase.waste_grams,
            "waste_percent": purchase.waste_percent,
            "created_at": finished_ms,
            "updated_at": finished_ms,
        }
    )


def _result_from_archive(archive: Entry, purchase_id: UUID) -> FinishResult:
    finished_ms = resolve_finished_ms(archive)
    return FinishResult(
        archived_entry_id=archive.id,
        purchase_finished_date=archive.purchase_finished_date
        or utc_date_iso(finished_ms),
        removed_purchase_id=purchase_id,
        waste_grams=archive.waste_grams,
        waste_percent=archive.waste_percent,
    )


def _product_kind(
    kind: str, category: str | None, form: str | None
) -> dict[str, object]:
    if kind != CONCENTRATE:
        return {"smokeable_kind": FLOWER}
    resolved = normalize_concentrate_category(category) or "Live Resin"
    return {
        "smokeable_kind": CONCENTRATE,
        "concentrate_category": resolved,
        "concentrate_form": normalize_concentrate_form(resolved, form),
    }


def _is_deductible(purchase: Purchase) -> bool:
    return purchase.status in {ACTIVE, None} and purchase.remaining_grams > 0


def _status_for(remaining: float) -> str:
    return DEPLETED if remaining <= 0 else ACTIVE


def _session_grams(data: EntryInput) -> float | None:
    return parse_weight(data.weight if data.weight is not None else data.dose)


def _next_stamp(purchase: Purchase) -> int:
    """Return a stamp strictly newer than the purchase's current one."""
    return max(now_ms(), (purchase.updated_at or 0) + 1)
