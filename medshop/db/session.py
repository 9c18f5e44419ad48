"""Engine and session factory for the storage slots.

SQLite by default. The ledger serialises writes itself, so SQLite gets a
fresh connection per session; other URLs keep SQLAlchemy's default pool.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from medshop.core.config import settings


def make_engine(url: str = settings.DATABASE_URL):
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=NullPool)
    return create_engine(url, pool_pre_ping=True)


engine = make_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
