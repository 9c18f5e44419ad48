from datetime import datetime
from decimal import Decimal
from typing import Any, List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class SaleItem(BaseModel):
    """One bill line. `name` and `price` are snapshots taken when the line was added."""
    model_config = ConfigDict(frozen=True)

    medicine_id: str
    name: str
    quantity: int  # native units: tablets for Tablet, units otherwise
    price: Decimal  # per native unit

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class SaleRequest(BaseModel):
    """A drafted sale handed to reconciliation."""
    customer_name: str = ""
    items: List[SaleItem] = Field(default_factory=list)


class SaleRecord(BaseModel):
    """Committed sale. Never edited after creation."""
    model_config = ConfigDict(frozen=True)

    id: str
    customer_name: str
    items: Tuple[SaleItem, ...]
    total_amount: Decimal
    sale_date: datetime


class SaleLine(BaseModel):
    medicine_id: str
    quantity: Any  # checked by the ledger so bad values get INVALID_QUANTITY


class SaleCreate(BaseModel):
    customer_name: str = ""
    items: List[SaleLine] = Field(default_factory=list)


class PrescriptionScanRequest(BaseModel):
    photo_data_uri: str
