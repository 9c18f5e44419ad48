from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from medshop.db.base import Base


class StorageSlot(Base):
    """
    One keyed document slot (catalog or sale history).

    The document is the whole collection serialized as JSON text; every write
    replaces it wholesale. Kept as text so an unreadable document is detected
    on load instead of inside the driver.
    """
    __tablename__ = "storage_slots"

    key = Column(String(64), primary_key=True)
    document = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
