from __future__ import annotations
import re
import uuid
from dataclasses import dataclass
from typing import Sequence
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hackhub.models.enrollment import Enrollment, Activity
from hackhub.models.milestone import Milestone
from hackhub.services.commits import CommitData, parse_timestamp
from hackhub.services.github import normalize_repo_url
from hackhub.services.matching import InvalidPatternError, compile_pattern

log = structlog.get_logger()


class PersistenceFailure(Exception):
    """Storing an activity failed; the rest of the batch for that enrollment was abandoned."""

    def __init__(self, enrollment_id: UUID, created: int, cause: Exception):
        super().__init__(f"Failed to record activity for enrollment {enrollment_id}: {cause}")
        self.enrollment_id = enrollment_id
        self.created = created
        self.cause = cause


@dataclass
class ProcessResult:
    processed: int = 0
    new_activities: int = 0


def _insert_once(session: AsyncSession):
    """INSERT ... ON CONFLICT DO NOTHING for the dialect behind `session`."""
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        return sqlite.insert(Activity)
    return postgresql.insert(Activity)


async def record_activity(session: AsyncSession, *, enrollment_id: UUID, milestone_id: UUID, commit: CommitData) -> bool:
    """
    Idempotent on (enrollment_id, milestone_id) via the unique constraint.
    Returns True if a row was inserted; False if the milestone was already completed.
    """
    stmt = (
        _insert_once(session)
        .values(
            id=uuid.uuid4(),
            enrollment_id=enrollment_id,
            milestone_id=milestone_id,
            commit_hash=commit.id,
            commit_message=commit.message,
            timestamp=parse_timestamp(commit.timestamp),
        )
        .on_conflict_do_nothing(index_elements=["enrollment_id", "milestone_id"])
        .returning(Activity.id)
    )
    return (await session.execute(stmt)).scalar_one_or_none() is not None


async def process_commits(
    session: AsyncSession,
    enrollment_id: UUID,
    repo_url: str,
    commits: Sequence[CommitData],
) -> ProcessResult:
    """
    Match a batch of commits against every milestone the enrollment has not completed yet.

    - The enrollment must still be linked to `repo_url`, otherwise nothing happens.
    - Commits are visited in the order given; the first matching commit completes a milestone.
    - Each new activity is committed on its own, so a store failure keeps earlier ones
      and raises PersistenceFailure for the remainder.
    """
    enrollment = await session.scalar(
        select(Enrollment).where(
            Enrollment.id == enrollment_id,
            Enrollment.repo_url == normalize_repo_url(repo_url),
        )
    )
    if not enrollment:
        log.info("commit_processor_no_enrollment", enrollment_id=str(enrollment_id), repo=repo_url)
        return ProcessResult()

    eid = enrollment.id
    completed: set[UUID] = set(
        (await session.execute(
            select(Activity.milestone_id).where(Activity.enrollment_id == eid)
        )).scalars().all()
    )
    milestones = (await session.execute(select(Milestone).order_by(Milestone.order.asc()))).scalars().all()

    # (id, title, pattern) snapshots; a rollback below expires the ORM rows
    pending: list[tuple[UUID, str, re.Pattern[str]]] = []
    for m in milestones:
        if m.id in completed:
            continue
        try:
            pending.append((m.id, m.title, compile_pattern(m.label_pattern)))
        except InvalidPatternError as e:
            # Skip for this batch only; the other milestones still count
            log.warning("milestone_pattern_invalid", milestone_id=str(m.id), pattern=m.label_pattern, reason=e.reason)

    created = 0
    for commit in commits:
        if not pending:
            break
        for mid, title, pattern in list(pending):
            if not pattern.search(commit.message or ""):
                continue
            try:
                inserted = await record_activity(session, enrollment_id=eid, milestone_id=mid, commit=commit)
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                log.error("activity_insert_failed", enrollment_id=str(eid), milestone_id=str(mid), commit=commit.id, error=str(e))
                raise PersistenceFailure(eid, created, e) from e
            pending.remove((mid, title, pattern))
            if inserted:
                created += 1
                log.info("commit_match", enrollment_id=str(eid), milestone=title, commit=commit.id)

    return ProcessResult(processed=len(commits), new_activities=created)
