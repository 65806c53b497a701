"""Backfill canonical fields on rows written by older versions."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from stash_tracker.domain.cultivars import Cultivar
from stash_tracker.domain.entries import PURCHASE_ARCHIVE, Entry
from stash_tracker.services.cultivars import CultivarService
from stash_tracker.services.entries import EntryService
from stash_tracker.services.live import ENTRIES, STRAINS
from stash_tracker.timeutils import now_ms

logger = logging.getLogger(__name__)


class LegacyRowRepository(Protocol):
    """Queries for rows missing canonical fields."""

    def list_cultivars_missing_name_key(self, user_id: UUID) -> list[Cultivar]:
        """Return cultivars with no ``name_lower``."""

    def list_untyped_archives(self, user_id: UUID) -> list[Entry]:
        """Return entries hidden from daily views that carry no ``journal_type``."""

    def list_entries_missing_lower_keys(self, user_id: UUID) -> list[Entry]:
        """Return entries with a name or brand but no lowercase key for it."""


@dataclass(frozen=True)
class MigrationReport:
    cultivars: int
    archives: int
    entries: int


@dataclass
class MigrationService:
    """Rewrites legacy rows so readers can rely on the canonical fields."""

    repository: LegacyRowRepository
    cultivar_service: CultivarService
    entry_service: EntryService

    def backfill(self, user_id: UUID) -> MigrationReport:
        """Rewrite a user's legacy rows. Safe to run repeatedly."""
        timestamp = now_ms()

        cultivars = 0
        for cultivar in self.repository.list_cultivars_missing_name_key(user_id):
            self.cultivar_service.repository.update_cultivar(
                user_id,
                cultivar.id,
                {
                    "name_lower": cultivar.name_lower or cultivar.name.strip().lower(),
                    "updated_at": timestamp,
                },
            )
            cultivars += 1

        archives = 0
        for entry in self.repository.list_untyped_archives(user_id):
            if not entry.is_legacy_archive:
                continue
            self.entry_service.repository.update_entry(
                user_id,
                entry.id,
                {"journal_type": PURCHASE_ARCHIVE, "updated_at": timestamp},
            )
            archives += 1

        entries = 0
        for entry in self.repository.list_entries_missing_lower_keys(user_id):
            payload: dict[str, object] = {}
            if entry.strain_name and not entry.strain_name_lower:
                payload["strain_name_lower"] = entry.strain_name.strip().lower()
            if entry.brand and not entry.brand_lower:
                payload["brand_lower"] = entry.brand.strip().lower()
            if not payload:
                continue
            payload["updated_at"] = timestamp
            self.entry_service.repository.update_entry(user_id, entry.id, payload)
            entries += 1

        if cultivars:
            self.cultivar_service.changes.publish(user_id, STRAINS)
        if archives or entries:
            self.entry_service.changes.publish(user_id, ENTRIES)
        logger.info(
            "Backfilled %s cultivars, %s archives, %s entries for user %s",
            cultivars,
            archives,
            entries,
            user_id,
        )
        return MigrationReport(cultivars=cultivars, archives=archives, entries=entries)
