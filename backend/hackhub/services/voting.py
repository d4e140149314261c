from __future__ import annotations
from uuid import UUID
import structlog
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from hackhub.models.enrollment import Enrollment
from hackhub.models.vote import Vote
from hackhub.services.event_config import is_voting_open

log = structlog.get_logger()


class VotingClosed(Exception):
    pass


class NotACandidate(Exception):
    pass


async def vote_counts(session: AsyncSession) -> dict[UUID, int]:
    """
    Votes per candidate enrollment. Votes for enrollments that were de-selected stay stored
    but are not counted until the enrollment is a candidate again.
    """
    rows = (await session.execute(
        select(Vote.candidate_id, func.count(Vote.id))
        .join(Enrollment, Enrollment.id == Vote.candidate_id)
        .where(Enrollment.is_voting_candidate.is_(True))
        .group_by(Vote.candidate_id)
    )).all()
    return {cid: int(n) for (cid, n) in rows}


async def list_candidates(session: AsyncSession) -> list[Enrollment]:
    return list((await session.execute(
        select(Enrollment)
        .options(selectinload(Enrollment.user))
        .where(Enrollment.is_voting_candidate.is_(True))
        .order_by(Enrollment.created_at.asc())
    )).scalars().all())


async def my_vote(session: AsyncSession, voter_id: UUID) -> Vote | None:
    return await session.scalar(select(Vote).where(Vote.voter_id == voter_id))


async def cast_vote(session: AsyncSession, *, voter_id: UUID, candidate_id: UUID) -> Vote:
    """One live vote per voter; voting again moves it. Caller commits."""
    if not await is_voting_open(session):
        raise VotingClosed()
    candidate = await session.get(Enrollment, candidate_id)
    if not candidate or not candidate.is_voting_candidate:
        raise NotACandidate()

    vote = await my_vote(session, voter_id)
    if vote:
        vote.candidate_id = candidate_id
    else:
        vote = Vote(voter_id=voter_id, candidate_id=candidate_id)
        session.add(vote)
    await session.flush()
    log.info("vote_cast", voter_id=str(voter_id), candidate_id=str(candidate_id))
    return vote


async def set_candidates(session: AsyncSession, enrollment_ids: list[UUID]) -> int:
    """Replace the candidate set. Returns how many enrollments are now flagged. Caller commits."""
    await session.execute(update(Enrollment).values(is_voting_candidate=False))
    if not enrollment_ids:
        return 0
    res = await session.execute(
        update(Enrollment).where(Enrollment.id.in_(enrollment_ids)).values(is_voting_candidate=True)
    )
    return int(res.rowcount or 0)


async def candidate_count(session: AsyncSession) -> int:
    n = await session.scalar(
        select(func.count()).select_from(Enrollment).where(Enrollment.is_voting_candidate.is_(True))
    )
    return int(n or 0)
