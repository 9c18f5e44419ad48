"""Inventory: catalog CRUD, POS search and low-stock alerts."""
from fastapi import APIRouter, Depends, Query

from medshop.api.deps import get_ledger
from medshop.core.exceptions import BusinessError, LedgerError
from medshop.schemas.medicine import Medicine, MedicineCreate, MedicineUpdate
from medshop.services.ledger_service import InventoryLedger
from medshop.services.stock_service import available_units, describe_stock, format_money, stock_level

router = APIRouter()


def medicine_row(m: Medicine) -> dict:
    row = m.model_dump(mode="json")
    row.update({
        "available_units": available_units(m),
        "stock_label": describe_stock(m),
        "price_display": format_money(m.price),
    })
    return row


@router.get("", response_model=list)
def list_inventory(
    search: str | None = Query(None),
    in_stock_only: bool = Query(False),
    ledger: InventoryLedger = Depends(get_ledger),
):
    """Catalog in insertion order, optionally filtered by name."""
    if search or in_stock_only:
        items = ledger.search_medicines(search or "", in_stock_only=in_stock_only)
    else:
        items = ledger.list_medicines()
    return [medicine_row(m) for m in items]


@router.get("/low-stock", response_model=list)
def get_low_stock_items(
    threshold: int | None = Query(None, description="Packs below which a medicine is low"),
    ledger: InventoryLedger = Depends(get_ledger),
):
    """Low stock for the dashboard alert banner."""
    return [
        {
            "id": m.id,
            "name": m.name,
            "stock_label": describe_stock(m),
            "status": "Out of Stock" if available_units(m) == 0 else "Low Stock",
        }
        for m in ledger.low_stock(threshold)
    ]


@router.get("/{medicine_id}", response_model=dict)
def get_inventory_item(medicine_id: str, ledger: InventoryLedger = Depends(get_ledger)):
    medicine = ledger.get_medicine(medicine_id)
    if medicine is None:
        raise BusinessError.not_found("Medicine", reason=medicine_id)
    return medicine_row(medicine)


@router.post("", response_model=dict, status_code=201)
def create_inventory_item(item: MedicineCreate, ledger: InventoryLedger = Depends(get_ledger)):
    """Add a new medicine to the catalog."""
    try:
        medicine = ledger.add_medicine(item)
    except LedgerError as e:
        raise BusinessError.from_ledger_error(e)
    return medicine_row(medicine)


@router.patch("/{medicine_id}", response_model=dict)
def update_inventory_item(
    medicine_id: str,
    updates: MedicineUpdate,
    ledger: InventoryLedger = Depends(get_ledger),
):
    try:
        medicine = ledger.update_medicine(medicine_id, updates)
    except LedgerError as e:
        raise BusinessError.from_ledger_error(e)
    return medicine_row(medicine)


@router.delete("/{medicine_id}", response_model=dict)
def delete_inventory_item(medicine_id: str, ledger: InventoryLedger = Depends(get_ledger)):
    """Delete a medicine. Sales history is kept."""
    try:
        medicine = ledger.delete_medicine(medicine_id)
    except LedgerError as e:
        raise BusinessError.from_ledger_error(e)
    return {"message": f"Deleted {medicine.name}", "id": medicine_id}
