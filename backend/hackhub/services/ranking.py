from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone as dt_tz
from typing import Any, Iterable, Mapping, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hackhub.models.enrollment import Enrollment
from hackhub.models.milestone import Milestone

EPOCH = datetime(1970, 1, 1, tzinfo=dt_tz.utc)


@dataclass
class RankedEntry:
    enrollment: Any
    score: int
    completed_count: int
    last_activity_time: datetime | None
    vote_count: int
    position: int = 0


def _utc(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC
    return ts.replace(tzinfo=dt_tz.utc) if ts.tzinfo is None else ts


def score_enrollment(activities: Iterable[Any], points_by_milestone: Mapping[UUID, int]) -> tuple[int, int, datetime | None]:
    """
    (score, completed_count, last_activity_time) recomputed from the activity log.
    Activities pointing at milestones that no longer exist do not count.
    """
    completed: set[UUID] = set()
    last: datetime | None = None
    for a in activities:
        if a.milestone_id not in points_by_milestone:
            continue
        completed.add(a.milestone_id)
        ts = _utc(a.timestamp)
        if last is None or ts > last:
            last = ts
    score = sum(points_by_milestone[mid] for mid in completed)
    return score, len(completed), last


def rank(
    enrollments: Sequence[Any],
    milestones: Sequence[Any],
    voting_open: bool,
    vote_counts: Mapping[UUID, int] | None = None,
    *,
    candidates_only: bool = True,
) -> list[RankedEntry]:
    """
    Leaderboard order.

    Normal mode:  score desc, last activity asc (earlier finisher wins the tie).
    Voting mode:  votes desc, score desc, last activity asc; only voting candidates
                  take part unless `candidates_only` is False (admin view).
    Enrollment id breaks any remaining tie so the order is total.
    Enrollments need `id`, `is_voting_candidate` and loaded `activities`.
    """
    points = {m.id: int(m.points) for m in milestones}
    vote_counts = vote_counts or {}

    entries: list[RankedEntry] = []
    for e in enrollments:
        if voting_open and candidates_only and not e.is_voting_candidate:
            continue
        score, completed, last = score_enrollment(e.activities, points)
        votes = int(vote_counts.get(e.id, 0)) if voting_open else 0
        entries.append(RankedEntry(enrollment=e, score=score, completed_count=completed, last_activity_time=last, vote_count=votes))

    def key(r: RankedEntry):
        last = (r.last_activity_time or EPOCH).timestamp()
        if voting_open:
            return (-r.vote_count, -r.score, last, str(r.enrollment.id))
        return (-r.score, last, str(r.enrollment.id))

    entries.sort(key=key)
    for i, r in enumerate(entries, start=1):
        r.position = i
    return entries


async def load_ranking_inputs(session: AsyncSession) -> tuple[list[Enrollment], list[Milestone]]:
    """Enrollments with user + activities eagerly loaded, and milestones in display order."""
    enrollments = (await session.execute(
        select(Enrollment)
        .options(selectinload(Enrollment.user), selectinload(Enrollment.activities))
        .execution_options(populate_existing=True)
    )).scalars().all()
    milestones = (await session.execute(select(Milestone).order_by(Milestone.order.asc()))).scalars().all()
    return list(enrollments), list(milestones)
