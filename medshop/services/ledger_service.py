"""
Inventory Ledger: the one owner of the catalog and the sale history.

All catalog/history mutations go through this object. Each mutation is
validated first, then written to storage (full collections, one
transaction), and only then swapped into memory, so a rejected or failed
operation leaves both collections exactly as they were.
"""
import logging
import threading
import uuid
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from medshop.core.config import settings
from medshop.core.exceptions import (
    EmptyBill,
    InvalidMedicine,
    InvalidQuantity,
    LedgerError,
    MalformedPersistedState,
    MissingCustomer,
    UnknownMedicine,
)
from medshop.schemas.medicine import Medicine, MedicineCreate, MedicineUpdate
from medshop.schemas.sale import SaleItem, SaleLine, SaleRecord, SaleRequest
from medshop.services.sale_service import SaleDraft, create_sale, is_valid_quantity
from medshop.services.stock_service import available_units, build_stock, stock_level
from medshop.services.storage_service import (
    SqlDocumentStore,
    dump_catalog,
    dump_history,
    load_catalog,
    load_history,
)

logger = logging.getLogger(__name__)


def new_medicine_id() -> str:
    return f"med-{uuid.uuid4().hex[:12]}"


def _validate_medicine_fields(name: str, location: str, price: Decimal, stock_fields: dict) -> None:
    if not name or not name.strip():
        raise InvalidMedicine("Medicine name cannot be empty")
    if not location or not location.strip():
        raise InvalidMedicine("Location cannot be empty")
    if price is None or price <= 0:
        raise InvalidMedicine("Price must be greater than 0")
    for field, value in stock_fields.items():
        if field == "tablets_per_strip":
            if value is not None and value < 1:
                raise InvalidMedicine("Tablets per strip must be at least 1")
        elif value is not None and value < 0:
            raise InvalidMedicine(f"{field.replace('_', ' ').capitalize()} cannot be negative")


class InventoryLedger:
    def __init__(
        self,
        store: SqlDocumentStore,
        medicines: Optional[List[Medicine]] = None,
        sales: Optional[List[SaleRecord]] = None,
        warnings: Optional[List[str]] = None,
    ):
        self.store = store
        self._medicines: List[Medicine] = list(medicines or [])
        self._sales: List[SaleRecord] = list(sales or [])
        self.warnings: List[str] = list(warnings or [])
        self._lock = threading.RLock()

    # ==========================================================================
    # LOADING / SAVING
    # ==========================================================================

    @classmethod
    def load(cls, store: SqlDocumentStore) -> "InventoryLedger":
        """Load both collections. Missing or unreadable data starts empty."""
        warnings: List[str] = []
        medicines = cls._load_slot(store, settings.CATALOG_SLOT, load_catalog, warnings)
        sales = cls._load_slot(store, settings.HISTORY_SLOT, load_history, warnings)
        logger.info(f"[Ledger] Loaded {len(medicines)} medicines and {len(sales)} sales")
        return cls(store, medicines, sales, warnings)

    @staticmethod
    def _load_slot(store, slot, parse, warnings):
        try:
            return parse(store.read(slot), slot)
        except MalformedPersistedState as e:
            logger.warning(f"[Storage] {e.message}")
            warnings.append(e.message)
        except SQLAlchemyError as e:
            # First run or storage offline: behave as empty
            logger.warning(f"[Storage] Could not read '{slot}': {type(e).__name__}: {e}")
            warnings.append(f"Storage unavailable while reading '{slot}'; starting empty")
        return []

    def _persist(self, medicines: Optional[List[Medicine]] = None, sales: Optional[List[SaleRecord]] = None):
        slots = {}
        if medicines is not None:
            slots[settings.CATALOG_SLOT] = dump_catalog(medicines)
        if sales is not None:
            slots[settings.HISTORY_SLOT] = dump_history(sales)
        try:
            self.store.write(slots)
        except SQLAlchemyError as e:
            logger.error(f"[Storage] Write failed for {sorted(slots)}: {e}", exc_info=True)
            raise
        if medicines is not None:
            self._medicines = medicines
        if sales is not None:
            self._sales = sales

    # ==========================================================================
    # CATALOG
    # ==========================================================================

    def list_medicines(self) -> List[Medicine]:
        return list(self._medicines)

    def get_medicine(self, medicine_id: str) -> Optional[Medicine]:
        for medicine in self._medicines:
            if medicine.id == medicine_id:
                return medicine
        return None

    def search_medicines(self, query: str = "", in_stock_only: bool = True) -> List[Medicine]:
        """Case-insensitive name search, as typed in the POS search box."""
        needle = (query or "").strip().lower()
        results = []
        for medicine in self._medicines:
            if in_stock_only and available_units(medicine) <= 0:
                continue
            if needle and needle not in medicine.name.lower():
                continue
            results.append(medicine)
        return results

    def low_stock(self, threshold: Optional[int] = None) -> List[Medicine]:
        """Medicines below `threshold` packs, lowest first."""
        limit = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
        items = [m for m in self._medicines if stock_level(m) < limit]
        return sorted(items, key=stock_level)

    def add_medicine(self, data: MedicineCreate) -> Medicine:
        stock_fields = {
            "quantity": data.quantity,
            "strips": data.strips,
            "loose_tablets": data.loose_tablets,
            "tablets_per_strip": data.tablets_per_strip,
        }
        _validate_medicine_fields(data.name, data.location, data.price, stock_fields)

        medicine = Medicine(
            id=new_medicine_id(),
            name=data.name.strip(),
            location=data.location.strip(),
            category=data.category,
            price=data.price,
            stock=build_stock(data.category, **stock_fields),
        )
        with self._lock:
            self._persist(medicines=self._medicines + [medicine])
        logger.info(f"[Ledger] Added {medicine.name} ({medicine.id}), {available_units(medicine)} units")
        return medicine

    def update_medicine(self, medicine_id: str, updates: MedicineUpdate) -> Medicine:
        with self._lock:
            current = self.get_medicine(medicine_id)
            if current is None:
                raise UnknownMedicine(medicine_id)

            name = updates.name if updates.name is not None else current.name
            location = updates.location if updates.location is not None else current.location
            price = updates.price if updates.price is not None else current.price
            category = updates.category if updates.category is not None else current.category
            stock_fields = updates.stock_fields()
            _validate_medicine_fields(name, location, price, stock_fields)

            if category != current.category or stock_fields:
                if category == current.category:
                    # Partial stock edit: start from the current representation
                    base = current.stock.model_dump(exclude={"kind"})
                    base.update(stock_fields)
                    stock_fields = base
                stock = build_stock(category, **stock_fields)
            else:
                stock = current.stock

            updated = Medicine(
                id=current.id,
                name=name.strip(),
                location=location.strip(),
                category=category,
                price=price,
                stock=stock,
            )
            self._persist(medicines=[updated if m.id == medicine_id else m for m in self._medicines])
        logger.info(f"[Ledger] Updated {updated.name} ({updated.id})")
        return updated

    def delete_medicine(self, medicine_id: str) -> Medicine:
        """Remove a medicine. Past sales keep referring to its id."""
        with self._lock:
            current = self.get_medicine(medicine_id)
            if current is None:
                raise UnknownMedicine(medicine_id)
            self._persist(medicines=[m for m in self._medicines if m.id != medicine_id])
        logger.info(f"[Ledger] Deleted {current.name} ({current.id})")
        return current

    # ==========================================================================
    # SALES
    # ==========================================================================

    def new_draft(self, customer_name: str = "") -> SaleDraft:
        return SaleDraft(customer_name)

    def build_request(self, customer_name: str, lines: Iterable[SaleLine]) -> SaleRequest:
        """Turn (medicine_id, quantity) lines into a priced sale request.

        Runs the same header checks as create_sale, in the same order, so the
        clerk gets the same rejection either way; create_sale re-validates.
        """
        lines = list(lines)
        if not lines:
            raise EmptyBill()
        if not customer_name.strip():
            raise MissingCustomer()

        for line in lines:
            if not is_valid_quantity(line.quantity):
                raise InvalidQuantity(line.quantity, line.medicine_id)

        draft = self.new_draft(customer_name)
        for line in lines:
            medicine = self.get_medicine(line.medicine_id)
            if medicine is None:
                raise UnknownMedicine(line.medicine_id)
            draft.add_item(medicine, line.quantity)
        return draft.to_request()

    def commit_sale(self, request: SaleRequest) -> SaleRecord:
        """Validate, decrement stock, append to history. All or nothing."""
        with self._lock:
            try:
                record, updated = create_sale(self._medicines, request)
            except LedgerError as e:
                logger.info(f"[Ledger] Sale rejected: {e}")
                raise
            self._persist(medicines=updated, sales=[record] + self._sales)
        logger.info(
            f"[Ledger] Sale {record.id} committed for {record.customer_name}: "
            f"{len(record.items)} lines, total {record.total_amount}"
        )
        return record

    def list_sales(self) -> List[SaleRecord]:
        """Sale history, newest first."""
        return list(self._sales)

    def clear_history(self) -> int:
        with self._lock:
            count = len(self._sales)
            self._persist(sales=[])
        logger.info(f"[Ledger] Cleared {count} sales from history")
        return count

    def resolve_items(self, sale: SaleRecord) -> List[Tuple[SaleItem, Optional[Medicine]]]:
        """Pair each line with its current catalog entry (None if since deleted)."""
        return [(item, self.get_medicine(item.medicine_id)) for item in sale.items]
