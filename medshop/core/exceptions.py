"""
Ledger error taxonomy and its mapping onto HTTP responses.

Every LedgerError is caller-recoverable: validation runs before any
mutation, so a raised error means the catalog and history are untouched.
The API layer converts them with BusinessError.from_ledger_error so the
POS can render an actionable message from the structured detail.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional
import logging

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for rejections raised by the inventory ledger."""

    code = "LEDGER_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def context(self) -> Dict[str, Any]:
        return {}

    def to_detail(self) -> Dict[str, Any]:
        detail = {"code": self.code, "message": self.message}
        detail.update(self.context())
        return detail


class EmptyBill(LedgerError):
    code = "EMPTY_BILL"

    def __init__(self, message: str = "Bill is empty"):
        super().__init__(message)


class MissingCustomer(LedgerError):
    code = "MISSING_CUSTOMER"

    def __init__(self, message: str = "Customer name is required"):
        super().__init__(message)


class InvalidQuantity(LedgerError):
    code = "INVALID_QUANTITY"

    def __init__(self, quantity: Any, medicine_id: Optional[str] = None):
        self.quantity = quantity
        self.medicine_id = medicine_id
        super().__init__(f"Invalid quantity {quantity!r}: must be a whole number greater than 0")

    def context(self) -> Dict[str, Any]:
        return {"medicine_id": self.medicine_id, "quantity": repr(self.quantity)}


@dataclass(frozen=True)
class Shortage:
    medicine_id: str
    name: str
    requested: int
    available: int

    @property
    def shortfall(self) -> int:
        return self.requested - self.available


class InsufficientStock(LedgerError):
    code = "INSUFFICIENT_STOCK"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, shortages: List[Shortage]):
        self.shortages = list(shortages)
        parts = [
            f"{s.name}: requested {s.requested}, only {s.available} available (short by {s.shortfall})"
            for s in self.shortages
        ]
        super().__init__("Not enough stock. " + "; ".join(parts))

    def context(self) -> Dict[str, Any]:
        return {
            "shortages": [dict(asdict(s), shortfall=s.shortfall) for s in self.shortages]
        }


class UnknownMedicine(LedgerError):
    code = "UNKNOWN_MEDICINE"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, medicine_id: str, name: Optional[str] = None):
        self.medicine_id = medicine_id
        self.name = name
        label = f"'{name}' ({medicine_id})" if name else medicine_id
        super().__init__(f"Medicine {label} is not in the catalog")

    def context(self) -> Dict[str, Any]:
        return {"medicine_id": self.medicine_id}


class InvalidMedicine(LedgerError):
    code = "INVALID_MEDICINE"

    def __init__(self, message: str = "Please fill all fields with valid data"):
        super().__init__(message)


class MalformedPersistedState(LedgerError):
    """Stored catalog/history could not be parsed. Recovered, never raised to the POS."""

    code = "MALFORMED_PERSISTED_STATE"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, slot: str, reason: str):
        self.slot = slot
        self.reason = reason
        super().__init__(f"Stored '{slot}' data is unreadable ({reason}); starting with an empty collection")

    def context(self) -> Dict[str, Any]:
        return {"slot": self.slot}


class BusinessError:
    """HTTP exceptions with safe (non-leaky) messages."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        if reason:
            logger.info(f"Not found: {resource} - {reason}")
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found",
        )

    @staticmethod
    def bad_request(detail: Any) -> HTTPException:
        """
        400 for input validation / business rule errors.

        OK to include specific details here since the clerk caused the issue.
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def conflict(detail: Any) -> HTTPException:
        logger.info(f"Conflict: {detail}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """
        Generic 500 - logs actual error internally, hides it from the client.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=True,
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )

    @staticmethod
    def from_ledger_error(error: LedgerError) -> HTTPException:
        """Map a ledger rejection onto the matching HTTP response."""
        detail = error.to_detail()
        if error.status_code == status.HTTP_404_NOT_FOUND:
            logger.info(f"Not found: {error.message}")
            return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
        if error.status_code == status.HTTP_409_CONFLICT:
            return BusinessError.conflict(detail)
        if error.status_code >= 500:
            return BusinessError.server_error(error)
        return BusinessError.bad_request(detail)
