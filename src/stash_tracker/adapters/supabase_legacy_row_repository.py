"""Supabase queries for rows that predate the canonical fields."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from stash_tracker.adapters.supabase_cultivar_repository import parse_cultivar
from stash_tracker.adapters.supabase_entry_repository import parse_entry
from stash_tracker.domain.cultivars import Cultivar
from stash_tracker.domain.entries import Entry
from stash_tracker.services.migration import LegacyRowRepository

_MISSING_LOWER_KEYS = (
    "and(strain_name.not.is.null,strain_name_lower.is.null),"
    "and(brand.not.is.null,brand_lower.is.null)"
)


@dataclass
class SupabaseLegacyRowRepository(LegacyRowRepository):
    client: Client

    def list_cultivars_missing_name_key(self, user_id: UUID) -> list[Cultivar]:
        response = (
            self.client.table("strains")
            .select("*")
            .eq("user_id", str(user_id))
            .is_("name_lower", "null")
            .execute()
        )
        return [parse_cultivar(row) for row in response.data or []]

    def list_untyped_archives(self, user_id: UUID) -> list[Entry]:
        response = (
            self.client.table("entries")
            .select("*")
            .eq("user_id", str(user_id))
            .eq("hidden_from_daily", "true")
            .is_("journal_type", "null")
            .execute()
        )
        return [parse_entry(row) for row in response.data or []]

    def list_entries_missing_lower_keys(self, user_id: UUID) -> list[Entry]:
        response = (
            self.client.table("entries")
            .select("*")
            .eq("user_id", str(user_id))
            .or_(_MISSING_LOWER_KEYS)
            .execute()
        )
        return [parse_entry(row) for row in response.data or []]
