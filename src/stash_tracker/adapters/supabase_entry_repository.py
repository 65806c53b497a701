"""Supabase implementation for session entries."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from stash_tracker.domain.entries import DEFAULT_METHOD, Entry, PurchaseSnapshot
from stash_tracker.services.entries import EntryRepository

TABLE = "entries"


@dataclass
class SupabaseEntryRepository(EntryRepository):
    """Supabase-backed repository for session entries."""

    client: Client

    def create_entry(self, user_id: UUID, payload: dict[str, object]) -> Entry:
        """Create an entry and return it."""
        response = (
            self.client.table(TABLE)
            .insert({"user_id": str(user_id), **payload})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create entry")
        return parse_entry(response.data[0])

    def get_entry(self, user_id: UUID, entry_id: UUID) -> Entry | None:
        """Return an entry by id, if present."""
        response = (
            self.client.table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("id", str(entry_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_entry(response.data[0])

    def update_entry(
        self, user_id: UUID, entry_id: UUID, payload: dict[str, object]
    ) -> None:
        """Patch an entry."""
        response = (
            self.client.table(TABLE)
            .update(payload)
            .eq("user_id", str(user_id))
            .eq("id", str(entry_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update entry")

    def delete_entry(self, user_id: UUID, entry_id: UUID) -> None:
        """Delete an entry."""
        self.client.table(TABLE).delete().eq("user_id", str(user_id)).eq(
            "id", str(entry_id)
        ).execute()

    def list_entries(
        self, user_id: UUID, start_ms: int | None = None, end_ms: int | None = None
    ) -> list[Entry]:
        """Return entries with ``start_ms <= time < end_ms``, newest first."""
        query = self.client.table(TABLE).select("*").eq("user_id", str(user_id))
        if start_ms is not None:
            query = query.gte("time", start_ms)
        if end_ms is not None:
            query = query.lt("time", end_ms)
        response = query.order("time", desc=True).execute()
        return [parse_entry(row) for row in response.data or []]

    def list_entries_by(self, user_id: UUID, field: str, value: object) -> list[Entry]:
        """Return entries whose ``field`` equals ``value``, newest first."""
        response = (
            self.client.table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq(field, filter_value(value))
            .order("time", desc=True)
            .execute()
        )
        return [parse_entry(row) for row in response.data or []]

    def list_recent_entries(self, user_id: UUID, limit: int) -> list[Entry]:
        """Return the most recent entries, newest first."""
        response = (
            self.client.table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("time", desc=True)
            .limit(limit)
            .execute()
        )
        return [parse_entry(row) for row in response.data or []]


def filter_value(value: object) -> str:
    """Render a value for a PostgREST equality filter."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def parse_entry(row: dict[str, object]) -> Entry:
    """Parse an entries row into a domain model."""
    return Entry(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        time=int(row.get("time") or 0),
        method=row.get("method") or DEFAULT_METHOD,
        strain_type=row.get("strain_type") or "Hybrid",
        strain_id=_optional_uuid(row.get("strain_id")),
        strain_name=row.get("strain_name"),
        strain_name_lower=row.get("strain_name_lower"),
        brand=row.get("brand"),
        brand_lower=row.get("brand_lower"),
        lineage=row.get("lineage"),
        thc_percent=_optional_float(row.get("thc_percent")),
        thca_percent=_optional_float(row.get("thca_percent")),
        cbd_percent=_optional_float(row.get("cbd_percent")),
        weight=_optional_float(row.get("weight")),
        mood_before=row.get("mood_before"),
        mood_after=row.get("mood_after"),
        effects=row.get("effects"),
        flavors=row.get("flavors"),
        aroma=row.get("aroma"),
        rating=_optional_float(row.get("rating")),
        notes=row.get("notes"),
        is_edible_session=bool(row.get("is_edible_session")),
        edible_name=row.get("edible_name"),
        edible_type=row.get("edible_type"),
        edible_mg=_optional_float(row.get("edible_mg")),
        purchase_id=_optional_uuid(row.get("purchase_id")),
        journal_type=row.get("journal_type"),
        hidden_from_daily=bool(row.get("hidden_from_daily")),
        purchase_made_date=row.get("purchase_made_date"),
        purchase_finished_date=row.get("purchase_finished_date"),
        purchase_finished_at_ms=row.get("purchase_finished_at_ms"),
        finished_date=row.get("finished_date"),
        purchase_snapshot=_parse_snapshot(row.get("purchase_snapshot")),
        waste_grams=_optional_float(row.get("waste_grams")),
        waste_percent=_optional_float(row.get("waste_percent")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _parse_snapshot(value: object) -> PurchaseSnapshot | None:
    if not isinstance(value, dict):
        return None
    return PurchaseSnapshot(
        total_grams=float(value.get("total_grams") or 0.0),
        remaining_grams=float(value.get("remaining_grams") or 0.0),
        total_cost_cents=int(value.get("total_cost_cents") or 0),
        purchase_date=value.get("purchase_date"),
    )


def _optional_uuid(value: object) -> UUID | None:
    return UUID(str(value)) if value else None


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None
