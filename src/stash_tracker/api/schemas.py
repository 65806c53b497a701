"""Pydantic request bodies for the JSON API."""

from uuid import UUID

from pydantic import BaseModel, Field

Potency = float | None
Loose = float | str | None


class EntryBody(BaseModel):
    """Session fields from the logging and edit forms."""

    method: str | None = None
    time: int | None = None
    strain_id: UUID | None = None
    strain_name: str | None = None
    strain_type: str | None = None
    brand: str | None = None
    lineage: str | None = None
    thc_percent: Potency = Field(default=None, ge=0, le=100)
    thca_percent: Potency = Field(default=None, ge=0, le=100)
    cbd_percent: Potency = Field(default=None, ge=0, le=100)
    weight: Loose = None
    dose: Loose = None
    mood_before: str | None = None
    mood_after: str | None = None
    effects: list[str] | str | None = None
    flavors: list[str] | str | None = None
    aroma: list[str] | str | None = None
    rating: float | None = Field(default=None, ge=0, le=10)
    notes: str | None = None
    is_edible_session: bool | None = None
    edible_name: str | None = None
    edible_type: str | None = None
    edible_mg: Loose = None
    mg: Loose = None


class CultivarBody(BaseModel):
    """Cultivar attributes for a find-or-create by name."""

    name: str = Field(min_length=1)
    type: str | None = None
    brand: str | None = None
    lineage: str | None = None
    thc_percent: Potency = Field(default=None, ge=0, le=100)
    thca_percent: Potency = Field(default=None, ge=0, le=100)
    cbd_percent: Potency = Field(default=None, ge=0, le=100)
    effects: list[str] | None = None
    flavors: list[str] | None = None
    aroma: list[str] | None = None
    rating: float | None = Field(default=None, ge=0, le=10)
    notes: str | None = None


class PurchaseBody(BaseModel):
    """A new purchase."""

    strain_name: str = Field(min_length=1)
    grams: float | str
    strain_type: str = "Hybrid"
    lineage: str | None = None
    brand: str | None = None
    thc_percent: Potency = Field(default=None, ge=0, le=100)
    thca_percent: Potency = Field(default=None, ge=0, le=100)
    dollars: float | None = Field(default=None, ge=0)
    purchase_date: str | None = None
    smokeable_kind: str | None = None
    concentrate_category: str | None = None
    concentrate_form: str | None = None


class PurchaseUpdateBody(BaseModel):
    """Manual edit of a purchase."""

    strain_name: str | None = None
    strain_type: str | None = None
    lineage: str | None = None
    brand: str | None = None
    thc_percent: Potency = Field(default=None, ge=0, le=100)
    thca_percent: Potency = Field(default=None, ge=0, le=100)
    grams: Loose = None
    remaining_grams: Loose = None
    dollars: float | None = Field(default=None, ge=0)
    purchase_date: str | None = None
    smokeable_kind: str | None = None
    concentrate_category: str | None = None
    concentrate_form: str | None = None


class AddGramsBody(BaseModel):
    grams: float = Field(gt=0)


class Credentials(BaseModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
