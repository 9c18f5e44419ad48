"""FastAPI dependencies: the shared inventory ledger."""
from fastapi import Request

from medshop.core.exceptions import BusinessError
from medshop.services.ledger_service import InventoryLedger


def get_ledger(request: Request) -> InventoryLedger:
    """The ledger loaded at startup (one per process, single shop)."""
    ledger = getattr(request.app.state, "ledger", None)
    if ledger is None:
        raise BusinessError.server_error(RuntimeError("Ledger not initialized"))
    return ledger
