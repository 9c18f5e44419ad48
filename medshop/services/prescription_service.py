"""Turn scanned prescription names into POS search suggestions.

Read-only: the scan result only pre-fills the search box, it never touches
stock or sales.
"""
import logging
from typing import Dict, List

from medshop.schemas.medicine import Medicine
from medshop.services.ledger_service import InventoryLedger

logger = logging.getLogger(__name__)


def match_prescription(ledger: InventoryLedger, names: List[str]) -> Dict[str, List[Medicine]]:
    """Map each scanned name to in-stock catalog entries whose name contains it.

    Falls back to the first word (e.g. "Paracetamol 650" -> "Paracetamol")
    when the full name finds nothing.
    """
    matches: Dict[str, List[Medicine]] = {}
    for name in names:
        hits = ledger.search_medicines(name, in_stock_only=True)
        if not hits and " " in name.strip():
            hits = ledger.search_medicines(name.split()[0], in_stock_only=True)
        matches[name] = hits
    logger.info(
        f"[Prescription] {len(names)} names scanned, "
        f"{sum(1 for hits in matches.values() if hits)} matched the catalog"
    )
    return matches
