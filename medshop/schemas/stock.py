"""Stock representations.

One tagged variant per way of counting stock:

- FlatUnitStock: a plain count of sellable units (Syrup, Injection, ...).
- TabletStock: whole strips plus loose tablets, always kept in canonical
  form (0 <= loose_tablets < tablets_per_strip).

Both expose available_units() and apply_decrement(units); callers never
branch on the category to do stock math.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from medshop.core.config import settings


def _check_decrement(units: int, available: int) -> None:
    if units < 0:
        raise ValueError(f"Cannot decrement stock by a negative amount ({units})")
    if units > available:
        raise ValueError(f"Cannot decrement {units} units, only {available} available")


class FlatUnitStock(BaseModel):
    kind: Literal["flat"] = "flat"
    quantity: int = Field(0, ge=0)

    def available_units(self) -> int:
        return self.quantity

    def apply_decrement(self, units: int) -> "FlatUnitStock":
        _check_decrement(units, self.quantity)
        return FlatUnitStock(quantity=self.quantity - units)


class TabletStock(BaseModel):
    kind: Literal["tablet"] = "tablet"
    strips: int = Field(0, ge=0)
    loose_tablets: int = Field(0, ge=0)
    tablets_per_strip: int = Field(default_factory=lambda: settings.DEFAULT_TABLETS_PER_STRIP)

    @field_validator("tablets_per_strip", mode="before")
    @classmethod
    def fallback_pack_size(cls, v: Any) -> int:
        """Missing or unusable pack sizes fall back to the configured default."""
        try:
            size = int(v)
        except (TypeError, ValueError):
            return settings.DEFAULT_TABLETS_PER_STRIP
        return size if size >= 1 else settings.DEFAULT_TABLETS_PER_STRIP

    @model_validator(mode="after")
    def normalize(self):
        """Re-establish strips = total // size, loose = total % size."""
        self.strips, self.loose_tablets = divmod(self.available_units(), self.tablets_per_strip)
        return self

    @classmethod
    def from_tablets(cls, total: int, tablets_per_strip: int) -> "TabletStock":
        strips, loose = divmod(total, tablets_per_strip)
        return cls(strips=strips, loose_tablets=loose, tablets_per_strip=tablets_per_strip)

    def available_units(self) -> int:
        return self.strips * self.tablets_per_strip + self.loose_tablets

    def apply_decrement(self, units: int) -> "TabletStock":
        available = self.available_units()
        _check_decrement(units, available)
        return TabletStock.from_tablets(available - units, self.tablets_per_strip)


Stock = Annotated[Union[FlatUnitStock, TabletStock], Field(discriminator="kind")]
