from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, Uuid, func
from hackhub.db import Base
from hackhub.models.user import User
from hackhub.models.milestone import Milestone

class Enrollment(Base):
    __tablename__ = "enrollments"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True, nullable=False)
    repo_url: Mapped[str | None] = mapped_column(String(255), index=True)  # normalised, see services.github.normalize_repo_url
    is_voting_candidate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user: Mapped[User] = relationship(lazy="raise")
    activities: Mapped[list["Activity"]] = relationship(
        back_populates="enrollment", cascade="all, delete-orphan", passive_deletes=True, lazy="raise"
    )


class Activity(Base):
    """
    Append-only milestone completion record.
    At most one row per (enrollment, milestone); a later matching commit never re-records it.
    """
    __tablename__ = "activities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    enrollment_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("enrollments.id", ondelete="CASCADE"), index=True, nullable=False
    )
    milestone_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("milestones.id", ondelete="CASCADE"), index=True, nullable=False
    )
    commit_hash: Mapped[str | None] = mapped_column(String(64), index=True)
    commit_message: Mapped[str] = mapped_column(Text(), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)  # commit author time

    enrollment: Mapped[Enrollment] = relationship(back_populates="activities", lazy="raise")
    milestone: Mapped[Milestone] = relationship(lazy="raise")

    __table_args__ = (
        UniqueConstraint("enrollment_id", "milestone_id", name="uq_activity_once_per_milestone"),
    )
