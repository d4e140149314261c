from __future__ import annotations
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from hackhub.db import get_session
from hackhub.schemas.leaderboard import ActivityPublic, LeaderboardResponse, LeaderboardRow
from hackhub.services.event_config import get_event_deadline, is_voting_open
from hackhub.services.ranking import RankedEntry, load_ranking_inputs, rank
from hackhub.services.voting import vote_counts

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

def to_rows(entries: list[RankedEntry]) -> list[LeaderboardRow]:
    rows = []
    for r in entries:
        e = r.enrollment
        rows.append(LeaderboardRow(
            position=r.position,
            enrollment_id=e.id,
            user_id=e.user_id,
            name=e.user.name or e.user.email,
            image=e.user.image,
            repo_url=e.repo_url,
            is_voting_candidate=e.is_voting_candidate,
            score=r.score,
            completed_count=r.completed_count,
            last_activity_time=r.last_activity_time,
            vote_count=r.vote_count,
            activities=[
                ActivityPublic(
                    id=a.id, milestone_id=a.milestone_id, commit_hash=a.commit_hash,
                    commit_message=a.commit_message, timestamp=a.timestamp,
                )
                for a in sorted(e.activities, key=lambda a: a.timestamp)
            ],
        ))
    return rows

@router.get("", response_model=LeaderboardResponse)
async def leaderboard(response: Response, session: AsyncSession = Depends(get_session)):
    # Rankings change with every push; clients must not cache them
    response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
    response.headers["Pragma"] = "no-cache"

    voting_open = await is_voting_open(session)
    enrollments, milestones = await load_ranking_inputs(session)
    counts = await vote_counts(session) if voting_open else {}
    entries = rank(enrollments, milestones, voting_open, counts)
    return LeaderboardResponse(
        rankings=to_rows(entries),
        is_voting_open=voting_open,
        total_milestones=len(milestones),
        event_deadline=await get_event_deadline(session),
    )
