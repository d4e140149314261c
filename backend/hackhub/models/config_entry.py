from __future__ import annotations
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, func
from hackhub.db import Base

VOTING_OPEN = "VOTING_OPEN"
EVENT_DEADLINE = "EVENT_DEADLINE"

class ConfigEntry(Base):
    """Process-wide key/value settings; the store is the source of truth, nothing is cached in memory."""
    __tablename__ = "config_entries"
    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
