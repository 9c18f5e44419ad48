"""
Storage collaborator: keyed JSON document slots in the database.

Two slots are used, one for the catalog and one for the sale history. Each
write replaces the slot wholesale. Documents are versioned:

    {"schema_version": 2, "medicines": [...]}
    {"schema_version": 2, "sales": [...]}          # newest first

Older documents are bare JSON lists and are migrated on load:

- v0 catalog: {id, name, location, price, quantity} with no category. Every
  record is filed under LEGACY_CATALOG_CATEGORY (default Tablet), where
  quantity counts strips of 10 tablets (fractional after loose sales). The
  real category is not recoverable; a syrup in a Tablet-era file comes back
  as tablets and has to be re-categorised by hand.
- v1 catalog: records with a camelCase `category` and, for tablets,
  strips / looseTablets / tabletsPerStrip.
- v0/v1 history: camelCase sale records.
"""
import json
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from medshop.core.config import settings
from medshop.core.exceptions import MalformedPersistedState
from medshop.models.storage_slot import StorageSlot
from medshop.schemas.medicine import Category, Medicine
from medshop.schemas.sale import SaleRecord
from medshop.schemas.stock import FlatUnitStock, TabletStock

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2
# First revision stored whole-strip counts of 10-tablet strips
LEGACY_TABLETS_PER_STRIP = 10


class SqlDocumentStore:
    """Read/replace JSON documents keyed by slot name."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def read(self, key: str) -> Optional[Any]:
        """Return the parsed document, or None if the slot was never written.

        Raises:
            MalformedPersistedState: stored text is not valid JSON.
            SQLAlchemyError: storage unavailable (caller decides how to recover).
        """
        db = self.session_factory()
        try:
            slot = db.query(StorageSlot).filter(StorageSlot.key == key).first()
            if slot is None:
                return None
            text = slot.document
        finally:
            db.close()

        if not text or not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedPersistedState(key, f"invalid JSON: {e.msg}") from e

    def write(self, slots: Dict[str, Any]) -> None:
        """Replace every given slot in one transaction (last write wins per key)."""
        db = self.session_factory()
        try:
            for key, document in slots.items():
                text = json.dumps(document, ensure_ascii=False)
                slot = db.query(StorageSlot).filter(StorageSlot.key == key).first()
                if slot is None:
                    db.add(StorageSlot(key=key, document=text))
                else:
                    slot.document = text
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


# ==============================================================================
# CATALOG DOCUMENTS
# ==============================================================================

def dump_catalog(medicines: List[Medicine]) -> dict:
    return {
        "schema_version": SCHEMA_VERSION,
        "medicines": [m.model_dump(mode="json") for m in medicines],
    }


def _migrate_v0_medicine(record: dict) -> dict:
    """Quantity-only record, filed under LEGACY_CATALOG_CATEGORY.

    For Tablet, quantity counts strips of 10 and may be fractional. For the
    flat categories it is rounded to whole units.
    """
    category = Category(settings.LEGACY_CATALOG_CATEGORY)
    quantity = float(record.get("quantity") or 0)
    if category is Category.TABLET:
        tablets = round(quantity * LEGACY_TABLETS_PER_STRIP)
        stock = TabletStock.from_tablets(max(tablets, 0), LEGACY_TABLETS_PER_STRIP)
    else:
        stock = FlatUnitStock(quantity=max(round(quantity), 0))
    return {
        "id": record.get("id"),
        "name": record.get("name"),
        "location": record.get("location") or "",
        "category": category.value,
        "price": record.get("price"),
        "stock": stock.model_dump(),
    }


def _migrate_v1_medicine(record: dict) -> dict:
    """Category-tagged record with camelCase strip fields."""
    category = Category(record["category"])
    if category is Category.TABLET:
        stock = {
            "kind": "tablet",
            "strips": record.get("strips") or 0,
            "loose_tablets": record.get("looseTablets") or 0,
            "tablets_per_strip": record.get("tabletsPerStrip"),
        }
    else:
        stock = FlatUnitStock(quantity=record.get("quantity") or 0).model_dump()
    return {
        "id": record.get("id"),
        "name": record.get("name"),
        "location": record.get("location") or "",
        "category": category.value,
        "price": record.get("price"),
        "stock": stock,
    }


def load_catalog(document: Any, slot: str = settings.CATALOG_SLOT) -> List[Medicine]:
    """Parse (and migrate) a stored catalog document.

    Raises:
        MalformedPersistedState: the document cannot be understood.
    """
    if document is None:
        return []
    try:
        if isinstance(document, list):
            records = [
                _migrate_v1_medicine(r) if "category" in r else _migrate_v0_medicine(r)
                for r in document
            ]
            logger.info(f"[Storage] Migrating {len(records)} legacy catalog records to v{SCHEMA_VERSION}")
        elif isinstance(document, dict):
            _check_version(document, slot)
            records = document.get("medicines", [])
        else:
            raise MalformedPersistedState(slot, f"unexpected document type {type(document).__name__}")
        return [Medicine.model_validate(r) for r in records]
    except MalformedPersistedState:
        raise
    except (ValidationError, KeyError, TypeError, ValueError, AttributeError) as e:
        raise MalformedPersistedState(slot, f"{type(e).__name__}: {e}") from e


# ==============================================================================
# HISTORY DOCUMENTS
# ==============================================================================

def dump_history(sales: List[SaleRecord]) -> dict:
    return {
        "schema_version": SCHEMA_VERSION,
        "sales": [s.model_dump(mode="json") for s in sales],
    }


def _migrate_legacy_sale(record: dict) -> dict:
    if "customerName" not in record:
        return record
    return {
        "id": record["id"],
        "customer_name": record["customerName"],
        "items": [
            {
                "medicine_id": item["medicineId"],
                "name": item["name"],
                "quantity": item["quantity"],
                "price": item["price"],
            }
            for item in record.get("items", [])
        ],
        "total_amount": record["totalAmount"],
        "sale_date": record["saleDate"],
    }


def load_history(document: Any, slot: str = settings.HISTORY_SLOT) -> List[SaleRecord]:
    """Parse (and migrate) a stored sale history document, newest first."""
    if document is None:
        return []
    try:
        if isinstance(document, list):
            records = [_migrate_legacy_sale(r) for r in document]
        elif isinstance(document, dict):
            _check_version(document, slot)
            records = document.get("sales", [])
        else:
            raise MalformedPersistedState(slot, f"unexpected document type {type(document).__name__}")
        return [SaleRecord.model_validate(r) for r in records]
    except MalformedPersistedState:
        raise
    except (ValidationError, KeyError, TypeError, ValueError, AttributeError) as e:
        raise MalformedPersistedState(slot, f"{type(e).__name__}: {e}") from e


def _check_version(document: dict, slot: str) -> None:
    version = document.get("schema_version")
    if version != SCHEMA_VERSION:
        raise MalformedPersistedState(slot, f"unsupported schema_version {version!r}")
