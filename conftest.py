"""Shared fixtures: an in-memory SQLite store and ledgers built on it."""
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medshop.db.init_db import init_db
from medshop.schemas.medicine import Category, MedicineCreate
from medshop.services.ledger_service import InventoryLedger
from medshop.services.storage_service import SqlDocumentStore


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def store(session_factory):
    return SqlDocumentStore(session_factory)


@pytest.fixture
def ledger(store):
    return InventoryLedger.load(store)


@pytest.fixture
def stocked_ledger(ledger):
    """Paracetamol: 10 strips of 10 (100 tablets). Cough Syrup: 5 units."""
    ledger.add_medicine(MedicineCreate(
        name="Paracetamol 500mg", location="Rack A-1", category=Category.TABLET,
        price=Decimal("25.00"), strips=10, tablets_per_strip=10,
    ))
    ledger.add_medicine(MedicineCreate(
        name="Cough Syrup", location="Rack C-3", category=Category.SYRUP,
        price=Decimal("12.00"), quantity=5,
    ))
    return ledger
