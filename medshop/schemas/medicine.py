from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from medshop.schemas.stock import Stock


class Category(str, Enum):
    """Closed set of medicine categories. Only TABLET uses strip/loose stock."""
    TABLET = "Tablet"
    SYRUP = "Syrup"
    VETERINARY = "Veterinary"
    INJECTION = "Injection"
    OTHER = "Other"

    @property
    def stock_kind(self) -> str:
        return "tablet" if self is Category.TABLET else "flat"


class Medicine(BaseModel):
    """Catalog entry. `price` is per strip for tablets, per unit otherwise."""
    id: str
    name: str
    location: str = ""
    category: Category = Category.OTHER
    price: Decimal = Field(gt=0)
    stock: Stock

    @model_validator(mode="after")
    def stock_matches_category(self):
        if self.stock.kind != self.category.stock_kind:
            raise ValueError(
                f"{self.category.value} medicines need '{self.category.stock_kind}' stock, got '{self.stock.kind}'"
            )
        return self


class MedicineCreate(BaseModel):
    name: str
    location: str
    category: Category = Category.OTHER
    price: Decimal
    quantity: int = 0  # units, non-Tablet categories
    strips: int = 0
    loose_tablets: int = 0
    tablets_per_strip: Optional[int] = None


class MedicineUpdate(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    category: Optional[Category] = None
    price: Optional[Decimal] = None
    quantity: Optional[int] = None
    strips: Optional[int] = None
    loose_tablets: Optional[int] = None
    tablets_per_strip: Optional[int] = None

    def stock_fields(self) -> dict:
        """Stock-related fields the clerk actually supplied."""
        fields = ("quantity", "strips", "loose_tablets", "tablets_per_strip")
        return {f: getattr(self, f) for f in fields if getattr(self, f) is not None}
