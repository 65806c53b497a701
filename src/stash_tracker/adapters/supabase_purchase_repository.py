"""Supabase implementation for stash purchases."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from stash_tracker.domain.cultivars import DEFAULT_STRAIN_TYPE
from stash_tracker.domain.purchases import Purchase
from stash_tracker.services.purchases import PurchaseRepository

TABLE = "purchases"


@dataclass
class SupabasePurchaseRepository(PurchaseRepository):
    """Supabase-backed repository for purchases."""

    client: Client

    def create_purchase(self, user_id: UUID, payload: dict[str, object]) -> Purchase:
        """Create a purchase and return it."""
        response = (
            self.client.table(TABLE)
            .insert({"user_id": str(user_id), **payload})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create purchase")
        return parse_purchase(response.data[0])

    def get_purchase(self, user_id: UUID, purchase_id: UUID) -> Purchase | None:
        """Return a purchase by id, if present."""
        response = (
            self.client.table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("id", str(purchase_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_purchase(response.data[0])

    def list_purchases(self, user_id: UUID) -> list[Purchase]:
        """Return purchases ordered by most recent update."""
        response = (
            self.client.table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .order("updated_at", desc=True)
            .execute()
        )
        return [parse_purchase(row) for row in response.data or []]

    def list_purchases_for_strain(
        self, user_id: UUID, strain_name_lower: str
    ) -> list[Purchase]:
        """Return purchases of a cultivar by lowercase name."""
        response = (
            self.client.table(TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("strain_name_lower", strain_name_lower)
            .order("updated_at", desc=True)
            .execute()
        )
        return [parse_purchase(row) for row in response.data or []]

    def update_purchase(
        self, user_id: UUID, purchase_id: UUID, payload: dict[str, object]
    ) -> None:
        """Patch a purchase unconditionally."""
        response = (
            self.client.table(TABLE)
            .update(payload)
            .eq("user_id", str(user_id))
            .eq("id", str(purchase_id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update purchase")

    def compare_and_set(
        self,
        user_id: UUID,
        purchase_id: UUID,
        expected_updated_at: int | None,
        payload: dict[str, object],
    ) -> bool:
        """Patch a purchase only if ``updated_at`` is unchanged.

        The guard runs inside the single UPDATE statement, so a concurrent
        writer makes it match zero rows.
        """
        query = (
            self.client.table(TABLE)
            .update(payload)
            .eq("user_id", str(user_id))
            .eq("id", str(purchase_id))
        )
        if expected_updated_at is None:
            query = query.is_("updated_at", "null")
        else:
            query = query.eq("updated_at", expected_updated_at)
        response = query.execute()
        return bool(response.data)

    def delete_purchase(self, user_id: UUID, purchase_id: UUID) -> None:
        """Delete a purchase."""
        self.client.table(TABLE).delete().eq("user_id", str(user_id)).eq(
            "id", str(purchase_id)
        ).execute()


def parse_purchase(row: dict[str, object]) -> Purchase:
    """Parse a purchases row into a domain model."""
    strain_name = str(row.get("strain_name") or "")
    return Purchase(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        strain_name=strain_name,
        strain_name_lower=row.get("strain_name_lower") or strain_name.lower(),
        strain_type=row.get("strain_type") or DEFAULT_STRAIN_TYPE,
        total_grams=float(row.get("total_grams") or 0.0),
        remaining_grams=float(row.get("remaining_grams") or 0.0),
        total_cost_cents=int(row.get("total_cost_cents") or 0),
        purchase_date=row.get("purchase_date"),
        status=row.get("status"),
        updated_at=row.get("updated_at"),
        lineage=row.get("lineage"),
        brand=row.get("brand"),
        thc_percent=_optional_float(row.get("thc_percent")),
        thca_percent=_optional_float(row.get("thca_percent")),
        smokeable_kind=row.get("smokeable_kind"),
        concentrate_category=row.get("concentrate_category"),
        concentrate_form=row.get("concentrate_form"),
        waste_grams=_optional_float(row.get("waste_grams")),
        waste_percent=_optional_float(row.get("waste_percent")),
        created_at=row.get("created_at"),
    )


def _optional_float(value: object) -> float | None:
    return float(value) if value is not None else None
