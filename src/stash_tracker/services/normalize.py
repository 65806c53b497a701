"""Tolerant parsing helpers applied before documents reach the store."""

import math
import re

from stash_tracker.domain.cultivars import STRAIN_TYPES
from stash_tracker.domain.purchases import CONCENTRATE_FORMS

GRAMS_PER_OUNCE = 28
STEP_EIGHTH = 3.5
STEP_QUARTER = 7.0

_GRAM_SUFFIX = re.compile(r"\s*(grams?|g)\s*$")
_MG_SUFFIX = re.compile(r"\s*(milligrams?|mg)\s*$")


def to_number(value: object) -> float | None:
    """Return a finite float for numbers or numeric strings."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def parse_weight(value: object) -> float | None:
    """Parse grams from ``0.35``, ``"0.35"``, ``"0.35g"`` or ``"0.35 grams"``."""
    if isinstance(value, str):
        return to_number(_GRAM_SUFFIX.sub("", value.strip().lower()))
    return to_number(value)


def parse_milligrams(value: object) -> float | None:
    """Parse milligrams from ``10``, ``"10mg"`` or ``"10 milligrams"``."""
    if isinstance(value, str):
        return to_number(_MG_SUFFIX.sub("", value.strip().lower()))
    return to_number(value)


def to_list(value: object) -> list[str] | None:
    """Return a trimmed list from a list or a comma-separated string."""
    if isinstance(value, list | tuple):
        items = [item.strip() if isinstance(item, str) else str(item) for item in value]
    elif isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
    else:
        return None
    cleaned = [item for item in items if item]
    return cleaned or None


def clean_text(value: object) -> str | None:
    """Return stripped text, or None for blanks and non-strings."""
    if not isinstance(value, str):
        return None
    return value.strip() or None


def normalize_strain_type(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    for strain_type in STRAIN_TYPES:
        if strain_type.lower() == lowered:
            return strain_type
    return None


def normalize_edible_category(value: object) -> str | None:
    """Map loose edible labels (``"gummies"``, ``"capsule"``) to a category."""
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if not lowered:
        return None
    if lowered.startswith("choc"):
        return "Chocolate"
    if lowered.startswith("gum"):
        return "Gummy"
    if lowered.startswith(("pill", "cap")):
        return "Pill"
    if lowered.startswith(("bev", "drink")):
        return "Beverage"
    if lowered == "other":
        return "Other"
    return None


def normalize_smokeable_kind(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if lowered in {"concentrate", "concentrates", "extract", "extracts"}:
        return "Concentrate"
    if lowered == "flower":
        return "Flower"
    return None


def normalize_concentrate_category(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower().replace("-", " ")
    for category in CONCENTRATE_FORMS:
        if category.lower() == lowered:
            return category
    return None


def concentrate_forms_for(category: str) -> tuple[str, ...]:
    """Return the forms a concentrate category allows."""
    return CONCENTRATE_FORMS.get(category, CONCENTRATE_FORMS["Live Resin"])


def normalize_concentrate_form(category: str, value: object) -> str:
    """Return ``value`` when allowed for ``category``, else its first form."""
    allowed = concentrate_forms_for(category)
    if isinstance(value, str):
        for form in allowed:
            if form.lower() == value.strip().lower():
                return form
    return allowed[0]


def snap_purchase_grams(grams: float) -> float:
    """Snap a purchase weight to the nearest sold increment.

    Up to a gram rounds to 1 g, up to an ounce to eighths, beyond to quarters.
    """
    value = max(0.0, float(grams))
    if 0 < value <= 1.01:  # noqa: PLR2004
        return 1.0
    if value <= GRAMS_PER_OUNCE + 1e-9:
        snapped = round(round(value / STEP_EIGHTH) * STEP_EIGHTH, 2)
        return snapped if snapped > 0 else STEP_EIGHTH
    snapped = round(round(value / STEP_QUARTER) * STEP_QUARTER, 2)
    return snapped if snapped > 0 else STEP_QUARTER


def to_cents(dollars: object) -> int | None:
    number = to_number(dollars)
    if number is None:
        return None
    return round(number * 100)


def strip_none(value: object) -> object:
    """Recursively drop ``None`` values; the store rejects undefined fields."""
    if isinstance(value, dict):
        return {
            key: strip_none(item) for key, item in value.items() if item is not None
        }
    if isinstance(value, list):
        return [strip_none(item) for item in value if item is not None]
    return value
