"""Sales: commit a bill, browse/clear history, CSV export."""
from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from medshop.api.deps import get_ledger
from medshop.core.exceptions import BusinessError, LedgerError
from medshop.schemas.sale import SaleCreate, SaleRecord
from medshop.services.export_service import export_sales_csv
from medshop.services.ledger_service import InventoryLedger
from medshop.services.stock_service import format_money

router = APIRouter()


def sale_row(sale: SaleRecord, ledger: InventoryLedger) -> dict:
    return {
        "id": sale.id,
        "customer_name": sale.customer_name,
        "sale_date": sale.sale_date.isoformat(),
        "total_amount": f"{sale.total_amount:.2f}",
        "total_display": format_money(sale.total_amount),
        "items": [
            {
                "medicine_id": item.medicine_id,
                "name": item.name,
                "quantity": item.quantity,
                "price": f"{item.price:.2f}",
                "line_total": f"{item.line_total:.2f}",
                "in_catalog": medicine is not None,
            }
            for item, medicine in ledger.resolve_items(sale)
        ],
    }


@router.post("", response_model=dict, status_code=201)
def create_sale(body: SaleCreate, ledger: InventoryLedger = Depends(get_ledger)):
    """Commit a bill: stock is deducted and the sale recorded, or nothing changes."""
    try:
        request = ledger.build_request(body.customer_name, body.items)
        record = ledger.commit_sale(request)
    except LedgerError as e:
        raise BusinessError.from_ledger_error(e)
    return sale_row(record, ledger)


@router.get("", response_model=list)
def list_sales(ledger: InventoryLedger = Depends(get_ledger)):
    """Sale history, newest first."""
    return [sale_row(s, ledger) for s in ledger.list_sales()]


@router.delete("", response_model=dict)
def clear_sales(ledger: InventoryLedger = Depends(get_ledger)):
    cleared = ledger.clear_history()
    return {"message": "All sales records have been deleted", "cleared": cleared}


@router.get("/export")
def export_sales(ledger: InventoryLedger = Depends(get_ledger)):
    """Download sales history as CSV."""
    sales = ledger.list_sales()
    if not sales:
        raise BusinessError.bad_request("No history to export")

    content = export_sales_csv(sales)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=sales_history_{date.today()}.csv"},
    )
