"""Supabase implementation for the cultivar library."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from stash_tracker.domain.cultivars import DEFAULT_STRAIN_TYPE, Cultivar
from stash_tracker.services.cultivars import CultivarRepository

TABLE = "strains"


@dataclass
class SupabaseCultivarRepository(CultivarRepository):
    """Supabase-backed repository for cultivars."""

    client: Client

    def find_cultivar(self, user_id: UUID, field: str, value: str) -> Cultivar | None:
        """Return the first cultivar whose ``field`` equals ``value``."""
        response = (
            self.client.table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq(field, value)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_cultivar(response.data[0])

    def get_cultivar(self, user_id: UUID, cultivar_id: UUID) -> Cultivar | None:
        """Return a cultivar by id, if present."""
        response = (
            self.client.table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("id", str(cultivar_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_cultivar(response.data[0])

    def list_cultivars(self, user_id: UUID) -> list[Cultivar]:
        """Return cultivars ordered by most recent update."""
        response = (
            self.client.table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("updated_at", desc=True)
            .execute()
        )
        return [parse_cultivar(row) for row in response.data or []]

    def create_cultivar(self, user_id: UUID, payload: dict[str, object]) -> Cultivar:
        """Create a cultivar and return it."""
        response = (
            self.client.table(TABLE)
            .insert({"user_id": str(user_id), **payload})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create cultivar")
        return parse_cultivar(response.data[0])

    def update_cultivar(
        self, user_id: UUID, cultivar_id: UUID, payload: dict[str, object]
    ) -> None:
        """Patch a cultivar."""
        self.client.table(TABLE).update(payload).eq("user_id", str(user_id)).eq(
            "id", str(cultivar_id)
        ).execute()

    def delete_cultivar(self, user_id: UUID, cultivar_id: UUID) -> None:
        """Delete a cultivar."""
        self.client.table(TABLE).delete().eq("user_id", str(user_id)).eq(
            "id", str(cultivar_id)
        ).execute()


def parse_cultivar(row: dict[str, object]) -> Cultivar:
    """Parse a strain row, reading the legacy ``name_lc`` key as a fallback."""
    name = str(row.get("name") or "")
    return Cultivar(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        name=name,
        name_lower=row.get("name_lower") or row.get("name_lc") or name.lower(),
        type=row.get("type") or DEFAULT_STRAIN_TYPE,
        brand=row.get("brand"),
        lineage=row.get("lineage"),
        thc_percent=_optional_float(row.get("thc_percent")),
        thca_percent=_optional_float(row.get("thca_percent")),
        cbd_percent=_optional_float(row.get("cbd_percent")),
        effects=row.get("effects"),
        flavors=row.get("flavors"),
        aroma=row.get("aroma"),
        rating=_optional_float(row.get("rating")),
        notes=row.get("notes"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None
