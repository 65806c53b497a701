"""Response shaping for domain objects."""

from dataclasses import asdict

from stash_tracker.domain.entries import Entry
from stash_tracker.domain.purchases import Purchase
from stash_tracker.services.formatting import format_cents, format_weight, total_potency
from stash_tracker.services.purchases import resolve_finished_ms


def purchase_view(purchase: Purchase) -> dict[str, object]:
    """Return a purchase with display fields for the stash cards."""
    remaining = purchase.display_remaining_grams
    return {
        **asdict(purchase),
        "status": purchase.effective_status,
        "remaining_grams": remaining,
        "total_label": format_weight(purchase.total_grams),
        "remaining_label": format_weight(remaining),
        "cost_label": format_cents(purchase.total_cost_cents),
        "total_potency": total_potency(purchase.thc_percent, purchase.thca_percent),
    }


def archive_view(entry: Entry) -> dict[str, object]:
    """Return an archived purchase with its resolved finish time."""
    snapshot = entry.purchase_snapshot
    return {
        **asdict(entry),
        "finished_at_ms": resolve_finished_ms(entry),
        "total_label": format_weight(snapshot.total_grams) if snapshot else None,
        "cost_label": format_cents(snapshot.total_cost_cents) if snapshot else None,
        "total_potency": total_potency(entry.thc_percent, entry.thca_percent),
    }
