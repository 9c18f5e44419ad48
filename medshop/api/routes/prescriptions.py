"""Prescription scanning: photo -> medicine names -> catalog suggestions."""
from fastapi import APIRouter, Depends

from medshop.api.deps import get_ledger
from medshop.schemas.sale import PrescriptionScanRequest
from medshop.services.ledger_service import InventoryLedger
from medshop.services.prescription_service import match_prescription
from medshop.services.stock_service import describe_stock
import rx_ai

router = APIRouter()


@router.post("/scan", response_model=dict)
def scan_prescription(body: PrescriptionScanRequest, ledger: InventoryLedger = Depends(get_ledger)):
    """Read names off the photo. An unreadable photo gives an empty list, not an error."""
    names = rx_ai.scan_prescription(body.photo_data_uri)
    matches = match_prescription(ledger, names)
    return {
        "medicines": names,
        "matches": {
            name: [
                {"id": m.id, "name": m.name, "stock_label": describe_stock(m)}
                for m in hits
            ]
            for name, hits in matches.items()
        },
    }
