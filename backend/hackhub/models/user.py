from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, DateTime, Uuid, func
from hackhub.db import Base

ROLE_STUDENT = "STUDENT"
ROLE_ADMIN = "ADMIN"

class User(Base):
    __tablename__ = "users"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(120))
    image: Mapped[str | None] = mapped_column(Text())
    password_hash: Mapped[str | None] = mapped_column(String(255))  # null for admins created by script
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_STUDENT)  # STUDENT|ADMIN
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
