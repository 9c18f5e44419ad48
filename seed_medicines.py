#!/usr/bin/env python3
"""
Seed script to load the starter medicine catalog.
Usage: python seed_medicines.py

Only seeds an empty catalog, so running it twice is harmless.
"""

from decimal import Decimal

from medshop.db.init_db import init_db
from medshop.db.session import SessionLocal
from medshop.schemas.medicine import Category, MedicineCreate
from medshop.services.ledger_service import InventoryLedger
from medshop.services.storage_service import SqlDocumentStore

STARTER_MEDICINES = [
    MedicineCreate(name="Paracetamol 500mg", location="Rack A-1", category=Category.TABLET,
                   price=Decimal("55.00"), strips=100, tablets_per_strip=10),
    MedicineCreate(name="Ibuprofen 200mg", location="Rack A-2", category=Category.TABLET,
                   price=Decimal("87.50"), strips=80, tablets_per_strip=10),
    MedicineCreate(name="Amoxicillin 250mg", location="Rack B-1", category=Category.TABLET,
                   price=Decimal("91.20"), strips=50, tablets_per_strip=6),
    MedicineCreate(name="Cough Syrup", location="Rack C-3", category=Category.SYRUP,
                   price=Decimal("12.00"), quantity=60),
    MedicineCreate(name="Aspirin 75mg", location="Rack A-3", category=Category.TABLET,
                   price=Decimal("56.00"), strips=120, tablets_per_strip=14),
    MedicineCreate(name="Vitamin C 1000mg", location="Shelf D", category=Category.OTHER,
                   price=Decimal("25.50"), quantity=200),
    MedicineCreate(name="Antacid Tablets", location="Rack C-1", category=Category.TABLET,
                   price=Decimal("99.90"), strips=75, tablets_per_strip=10),
    MedicineCreate(name="Ceftriaxone 1g", location="Fridge 1", category=Category.INJECTION,
                   price=Decimal("48.00"), quantity=25),
    MedicineCreate(name="Ivermectin Pour-On", location="Vet Shelf", category=Category.VETERINARY,
                   price=Decimal("320.00"), quantity=8),
]


def seed_catalog(ledger: InventoryLedger) -> int:
    """Add the starter medicines to an empty ledger. Returns how many were added."""
    if ledger.list_medicines():
        print(f"Catalog already has {len(ledger.list_medicines())} medicines, skipping seed")
        return 0
    for item in STARTER_MEDICINES:
        ledger.add_medicine(item)
    return len(STARTER_MEDICINES)


def main() -> bool:
    init_db()
    ledger = InventoryLedger.load(SqlDocumentStore(SessionLocal))
    added = seed_catalog(ledger)
    print(f"Seeded {added} medicines")
    return True


if __name__ == "__main__":
    main()
