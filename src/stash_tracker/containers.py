"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from stash_tracker.adapters.supabase_cultivar_repository import (
    SupabaseCultivarRepository,
)
from stash_tracker.adapters.supabase_entry_repository import SupabaseEntryRepository
from stash_tracker.adapters.supabase_identity_provider import (
    SupabaseIdentityProvider,
)
from stash_tracker.adapters.supabase_legacy_row_repository import (
    SupabaseLegacyRowRepository,
)
from stash_tracker.adapters.supabase_purchase_repository import (
    SupabasePurchaseRepository,
)
from stash_tracker.config import Settings
from stash_tracker.services.auth import AuthService
from stash_tracker.services.cultivars import CultivarService
from stash_tracker.services.entries import EntryService
from stash_tracker.services.insights import InsightsService
from stash_tracker.services.live import ChangeFeed
from stash_tracker.services.migration import MigrationService
from stash_tracker.services.purchases import PurchaseService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    changes: ChangeFeed
    auth_service: AuthService
    cultivar_service: CultivarService
    entry_service: EntryService
    purchase_service: PurchaseService
    insights_service: InsightsService
    migration_service: MigrationService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    auth_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    changes = ChangeFeed()
    cultivar_service = CultivarService(
        SupabaseCultivarRepository(supabase_client), changes
    )
    entry_service = EntryService(
        SupabaseEntryRepository(supabase_client), cultivar_service, changes
    )
    purchase_service = PurchaseService(
        repository=SupabasePurchaseRepository(supabase_client),
        entry_service=entry_service,
        cultivar_service=cultivar_service,
        changes=changes,
    )
    insights_service = InsightsService(
        entry_service=entry_service,
        purchase_service=purchase_service,
        top_limit=resolved_settings.top_cultivars_limit,
    )
    migration_service = MigrationService(
        repository=SupabaseLegacyRowRepository(supabase_client),
        cultivar_service=cultivar_service,
        entry_service=entry_service,
    )
    return AppContainer(
        settings=resolved_settings,
        changes=changes,
        auth_service=AuthService(SupabaseIdentityProvider(auth_client)),
        cultivar_service=cultivar_service,
        entry_service=entry_service,
        purchase_service=purchase_service,
        insights_service=insights_service,
        migration_service=migration_service,
    )
