"""
Sale Reconciliation — validate a drafted sale and apply it to the catalog.

A sale lives in two states:

- Draft: a SaleDraft being built at the counter. Mutable, never persisted.
- Committed: the SaleRecord returned by create_sale. Immutable.

create_sale is a pure function: it never mutates the catalog it is given.
It either returns the new record and a new catalog, or raises exactly one
LedgerError and leaves everything as it was. Checks run in this order:

1. EmptyBill        - no lines
2. MissingCustomer  - blank customer name after trimming
3. InvalidQuantity  - a line quantity is not a whole number > 0
4. UnknownMedicine  - a line references an id not in the catalog
5. InsufficientStock - demand, summed per medicine across lines, exceeds
                       available units
"""
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Sequence, Tuple

from medshop.core.exceptions import (
    EmptyBill,
    InsufficientStock,
    InvalidQuantity,
    MissingCustomer,
    Shortage,
    UnknownMedicine,
)
from medshop.schemas.medicine import Medicine
from medshop.schemas.sale import SaleItem, SaleRecord, SaleRequest
from medshop.services.stock_service import apply_decrement, available_units, unit_price

logger = logging.getLogger(__name__)


def new_sale_id() -> str:
    return f"sale-{uuid.uuid4().hex[:12]}"


def is_valid_quantity(quantity) -> bool:
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity > 0


class SaleDraft:
    """The bill being built at the counter."""

    def __init__(self, customer_name: str = ""):
        self.customer_name = customer_name
        self.items: List[SaleItem] = []

    def add_item(self, medicine: Medicine, quantity: int) -> SaleItem:
        """Add `quantity` native units of `medicine`, merging with an existing line."""
        if not is_valid_quantity(quantity):
            raise InvalidQuantity(quantity, medicine.id)

        for index, existing in enumerate(self.items):
            if existing.medicine_id == medicine.id:
                merged = existing.model_copy(update={"quantity": existing.quantity + quantity})
                self.items[index] = merged
                return merged

        item = SaleItem(
            medicine_id=medicine.id,
            name=medicine.name,
            quantity=quantity,
            price=unit_price(medicine),
        )
        self.items.append(item)
        return item

    def remove_item(self, medicine_id: str) -> None:
        self.items = [item for item in self.items if item.medicine_id != medicine_id]

    @property
    def total_amount(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    def to_request(self) -> SaleRequest:
        return SaleRequest(customer_name=self.customer_name, items=list(self.items))


def _aggregate_demand(
    catalog_by_id: Dict[str, Medicine], items: Sequence[SaleItem]
) -> Dict[str, int]:
    demand: Dict[str, int] = {}
    for item in items:
        if not is_valid_quantity(item.quantity):
            raise InvalidQuantity(item.quantity, item.medicine_id)
    for item in items:
        if item.medicine_id not in catalog_by_id:
            raise UnknownMedicine(item.medicine_id, item.name)
        demand[item.medicine_id] = demand.get(item.medicine_id, 0) + item.quantity
    return demand


def create_sale(
    catalog: Sequence[Medicine],
    request: SaleRequest,
    now: datetime | None = None,
) -> Tuple[SaleRecord, List[Medicine]]:
    """Validate `request` against `catalog` and build the committed sale.

    Returns:
        (record, updated_catalog) where updated_catalog keeps catalog order.

    Raises:
        EmptyBill, MissingCustomer, InvalidQuantity, UnknownMedicine,
        InsufficientStock: nothing is mutated.
    """
    if not request.items:
        raise EmptyBill()

    customer_name = request.customer_name.strip()
    if not customer_name:
        raise MissingCustomer()

    catalog_by_id = {medicine.id: medicine for medicine in catalog}
    demand = _aggregate_demand(catalog_by_id, request.items)

    shortages = []
    for medicine_id, requested in demand.items():
        medicine = catalog_by_id[medicine_id]
        available = available_units(medicine)
        if requested > available:
            shortages.append(Shortage(medicine_id, medicine.name, requested, available))
    if shortages:
        raise InsufficientStock(shortages)

    record = SaleRecord(
        id=new_sale_id(),
        customer_name=customer_name,
        items=tuple(request.items),
        total_amount=sum((item.line_total for item in request.items), Decimal("0")),
        sale_date=now or datetime.now(timezone.utc),
    )

    updated_catalog = [
        apply_decrement(medicine, demand[medicine.id]) if medicine.id in demand else medicine
        for medicine in catalog
    ]

    logger.debug(
        f"[Reconcile] {record.id}: {len(record.items)} lines over {len(demand)} medicines, "
        f"total={record.total_amount}"
    )
    return record, updated_catalog
