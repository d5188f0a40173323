"""Stored collection — one row per record-store key, maps to the 'record_store' table."""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func

from helpdesk.infrastructure.database import Base


class StoredCollection(Base):
    __tablename__ = "record_store"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)  # JSON array (or object for the session pointer)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<StoredCollection {self.key}>"
