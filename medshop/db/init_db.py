"""Create all tables. Run on app startup."""
from sqlalchemy.engine import Engine

from medshop.db.base import Base
from medshop.db.session import engine as default_engine
from medshop.models import storage_slot  # noqa: F401 - register models


def init_db(engine: Engine | None = None):
    Base.metadata.create_all(bind=engine or default_engine)
