"""Services for the cultivar library."""

import logging
from dataclasses import dataclass, field
from typing import Protocol
from uuid import UUID

from stash_tracker.domain.cultivars import DEFAULT_STRAIN_TYPE, Cultivar, CultivarInput
from stash_tracker.services.live import STRAINS, ChangeFeed
from stash_tracker.services.normalize import (
    clean_text,
    normalize_strain_type,
    strip_none,
    to_list,
    to_number,
)
from stash_tracker.timeutils import now_ms

logger = logging.getLogger(__name__)

NAME_KEY = "name_lower"
LEGACY_NAME_KEY = "name_lc"


class CultivarRepository(Protocol):
    """Persistence interface for the cultivar library."""

    def find_cultivar(self, user_id: UUID, field: str, value: str) -> Cultivar | None:
        """Return the first cultivar whose ``field`` equals ``value``."""

    def get_cultivar(self, user_id: UUID, cultivar_id: UUID) -> Cultivar | None:
        """Return a cultivar by id, if present."""

    def list_cultivars(self, user_id: UUID) -> list[Cultivar]:
        """Return cultivars ordered by most recent update."""

    def create_cultivar(self, user_id: UUID, payload: dict[str, object]) -> Cultivar:
        """Create a cultivar and return it."""

    def update_cultivar(
        self, user_id: UUID, cultivar_id: UUID, payload: dict[str, object]
    ) -> None:
        """Patch a cultivar."""

    def delete_cultivar(self, user_id: UUID, cultivar_id: UUID) -> None:
        """Delete a cultivar."""


@dataclass
class CultivarService:
    """Find-or-create and maintenance of cultivar records."""

    repository: CultivarRepository
    changes: ChangeFeed = field(default_factory=ChangeFeed)

    def upsert_by_name(self, user_id: UUID, data: CultivarInput) -> UUID:
        """Merge ``data`` into the cultivar with the same case-insensitive name.

        Attributes left as None never overwrite stored values; a new cultivar
        without a type is stored as Hybrid.
        """
        name = data.name.strip()
        if not name:
            raise ValueError("Cultivar name is required")
        name_lower = name.lower()
        existing = self.repository.find_cultivar(user_id, NAME_KEY, name_lower)
        if existing is None:
            existing = self.repository.find_cultivar(
                user_id, LEGACY_NAME_KEY, name_lower
            )

        timestamp = now_ms()
        payload = strip_none(
            {
                "name": name,
                NAME_KEY: name_lower,
                "type": normalize_strain_type(data.type),
                "brand": clean_text(data.brand),
                "lineage": clean_text(data.lineage),
                "thc_percent": to_number(data.thc_percent),
                "thca_percent": to_number(data.thca_percent),
                "cbd_percent": to_number(data.cbd_percent),
                "effects": to_list(data.effects),
                "flavors": to_list(data.flavors),
                "aroma": to_list(data.aroma),
                "rating": to_number(data.rating),
                "notes": clean_text(data.notes),
                "updated_at": timestamp,
            }
        )

        if existing is not None:
            self.repository.update_cultivar(user_id, existing.id, payload)
            cultivar_id = existing.id
        else:
            created = self.repository.create_cultivar(
                user_id,
                {"type": DEFAULT_STRAIN_TYPE, **payload, "created_at": timestamp},
            )
            cultivar_id = created.id
            logger.info("Created cultivar %s for user %s", cultivar_id, user_id)
        self.changes.publish(user_id, STRAINS)
        return cultivar_id

    def try_upsert(self, user_id: UUID, data: CultivarInput) -> UUID | None:
        """Upsert without letting a failure reach the caller's primary write."""
        try:
            return self.upsert_by_name(user_id, data)
        except Exception:
            logger.warning(
                "Cultivar upsert failed for %r; continuing without a link",
                data.name,
                exc_info=True,
            )
            return None

    def get_cultivar(self, user_id: UUID, cultivar_id: UUID) -> Cultivar | None:
        return self.repository.get_cultivar(user_id, cultivar_id)

    def list_cultivars(self, user_id: UUID) -> list[Cultivar]:
        return self.repository.list_cultivars(user_id)

    def delete_cultivar(self, user_id: UUID, cultivar_id: UUID) -> None:
        """Delete a cultivar; sessions that reference it are kept."""
        self.repository.delete_cultivar(user_id, cultivar_id)
        self.changes.publish(user_id, STRAINS)
