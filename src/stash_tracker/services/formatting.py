"""Display formatting for weights, money and potency."""

from stash_tracker.services.normalize import GRAMS_PER_OUNCE, STEP_EIGHTH

_OUNCE_FRACTIONS = {
    1: "1/8 oz",
    2: "1/4 oz",
    4: "1/2 oz",
    8: "1 oz",
}


def format_weight(grams: float | None) -> str:
    """Format grams the way dispensaries label them.

    Whole eighths up to an ounce use the fraction names, larger whole
    eighths are shown in ounces, everything else in grams.
    """
    if grams is None:
        return "-"
    value = max(0.0, grams)
    eighths = value / STEP_EIGHTH
    if value > 0 and abs(eighths - round(eighths)) < 1e-9:
        label = _OUNCE_FRACTIONS.get(round(eighths))
        if label:
            return label
        if value > GRAMS_PER_OUNCE:
            return f"{value / GRAMS_PER_OUNCE:g} oz"
    return f"{value:g} g"


def format_cents(cents: int | None) -> str:
    if cents is None:
        return "-"
    return f"${cents / 100:,.2f}"


def total_potency(thc_percent: float | None, thca_percent: float | None) -> float | None:
    """Return THC plus THCA, or None when neither is known."""
    if thc_percent is None and thca_percent is None:
        return None
    return round((thc_percent or 0.0) + (thca_percent or 0.0), 2)
