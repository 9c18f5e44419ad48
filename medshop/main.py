"""
Medshop Backend — pharmacy point-of-sale and inventory ledger.

ARCHITECTURE:
- Browser POS: search, bill building, history (external)
- FastAPI Backend: the inventory ledger and its rules
- SQLite DB: keyed JSON slots for the catalog and the sale history
- Groq vision: best-effort prescription name extraction
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from medshop.api.routes import inventory, prescriptions, sales
from medshop.core.config import settings
from medshop.db.init_db import init_db
from medshop.db.session import SessionLocal
from medshop.services.ledger_service import InventoryLedger
from medshop.services.storage_service import SqlDocumentStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
    1. Initialize database tables
    2. Load the ledger (empty on first run or unreadable data)
    """
    try:
        print("[*] Initializing database...")
        init_db()
        print("[OK] Database initialized")
    except Exception as e:
        # Storage offline: the ledger still loads (empty) and reports it
        print(f"[ERROR] Database init failed: {e}")

    app.state.ledger = InventoryLedger.load(SqlDocumentStore(SessionLocal))
    for warning in app.state.ledger.warnings:
        print(f"[WARN] {warning}")
    print(f"[OK] Ledger ready: {len(app.state.ledger.list_medicines())} medicines")

    yield


app = FastAPI(
    title=f"{settings.SHOP_NAME} POS API",
    description="Medicine catalog, billing with stock deduction, sales history and prescription scanning.",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Origin"],
    max_age=600,
    expose_headers=["Content-Type", "Content-Disposition"],
)

app.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
app.include_router(sales.router, prefix="/sales", tags=["sales"])
app.include_router(prescriptions.router, prefix="/prescriptions", tags=["prescriptions"])


@app.get("/health")
def health():
    ledger = getattr(app.state, "ledger", None)
    return {
        "status": "ok" if ledger is not None else "starting",
        "shop": settings.SHOP_NAME,
        "warnings": list(ledger.warnings) if ledger is not None else [],
    }
