from __future__ import annotations
from uuid import UUID
import structlog
from fastapi import APIRouter, Depends, HTTPException
from redis import Redis
from rq import Queue
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from hackhub.auth_deps import require_admin
from hackhub.config import settings
from hackhub.db import get_session
from hackhub.jobs.poll_repositories import poll_repositories
from hackhub.models.enrollment import Enrollment
from hackhub.models.milestone import Milestone
from hackhub.routes.leaderboard import to_rows
from hackhub.routes.milestones import to_milestone_public
from hackhub.schemas.admin import (
    EventTimer, EventTimerRequest, PollSummary, VoteCandidatesRequest,
    VoteControlRequest, VoteControlStatus, WebhookStatus,
)
from hackhub.schemas.leaderboard import LeaderboardRow
from hackhub.schemas.milestone import MilestoneCreate, MilestonePublic, MilestoneUpdate
from hackhub.services.event_config import get_event_deadline, is_voting_open, set_event_deadline, set_voting_open
from hackhub.services.poller import poll_all
from hackhub.services.ranking import load_ranking_inputs, rank
from hackhub.services.voting import candidate_count, set_candidates, vote_counts

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])
log = structlog.get_logger()

# RQ queue (connects on first enqueue)
_redis = Redis.from_url(settings.redis_url)
q = Queue("default", connection=_redis)

# ---------- milestones ----------

@router.get("/milestones", response_model=list[MilestonePublic])
async def list_milestones(session: AsyncSession = Depends(get_session)):
    rows = (await session.execute(select(Milestone).order_by(Milestone.order.asc(), Milestone.created_at.asc()))).scalars().all()
    return [to_milestone_public(m) for m in rows]

@router.post("/milestones", response_model=MilestonePublic, status_code=201)
async def create_milestone(payload: MilestoneCreate, session: AsyncSession = Depends(get_session)):
    m = Milestone(**payload.model_dump())
    session.add(m)
    await session.commit()
    await session.refresh(m)
    log.info("milestone_created", milestone_id=str(m.id), pattern=m.label_pattern, points=m.points)
    return to_milestone_public(m)

@router.patch("/milestones/{milestone_id}", response_model=MilestonePublic)
async def update_milestone(milestone_id: UUID, payload: MilestoneUpdate, session: AsyncSession = Depends(get_session)):
    m = await session.get(Milestone, milestone_id)
    if not m:
        raise HTTPException(status_code=404, detail="Milestone not found")
    changes = payload.model_dump(exclude_unset=True)
    for field in ("title", "label_pattern", "order", "points"):
        if field in changes and changes[field] is None:
            raise HTTPException(status_code=422, detail=f"{field} cannot be null")
    for field, value in changes.items():
        setattr(m, field, value)
    await session.commit()
    await session.refresh(m)
    return to_milestone_public(m)

@router.delete("/milestones/{milestone_id}", status_code=204)
async def delete_milestone(milestone_id: UUID, session: AsyncSession = Depends(get_session)):
    # Activities go with it (FK cascade), so scores drop on the next ranking
    res = await session.execute(delete(Milestone).where(Milestone.id == milestone_id))
    if not res.rowcount:
        raise HTTPException(status_code=404, detail="Milestone not found")
    await session.commit()
    log.info("milestone_deleted", milestone_id=str(milestone_id))

# ---------- enrollments ----------

@router.get("/enrollments", response_model=list[LeaderboardRow])
async def list_enrollments(session: AsyncSession = Depends(get_session)):
    voting_open = await is_voting_open(session)
    enrollments, milestones = await load_ranking_inputs(session)
    counts = await vote_counts(session) if voting_open else {}
    return to_rows(rank(enrollments, milestones, voting_open, counts, candidates_only=False))

@router.delete("/enrollments/{enrollment_id}", status_code=204)
async def delete_enrollment(enrollment_id: UUID, session: AsyncSession = Depends(get_session)):
    res = await session.execute(delete(Enrollment).where(Enrollment.id == enrollment_id))
    if not res.rowcount:
        raise HTTPException(status_code=404, detail="Enrollment not found")
    await session.commit()
    log.info("enrollment_deleted", enrollment_id=str(enrollment_id))

# ---------- voting ----------

@router.get("/vote-control", response_model=VoteControlStatus)
async def vote_control_status(session: AsyncSession = Depends(get_session)):
    return VoteControlStatus(is_open=await is_voting_open(session), candidate_count=await candidate_count(session))

@router.post("/vote-control", response_model=VoteControlStatus)
async def vote_control(payload: VoteControlRequest, session: AsyncSession = Depends(get_session)):
    await set_voting_open(session, payload.action == "OPEN")
    await session.commit()
    log.info("voting_toggled", action=payload.action)
    return VoteControlStatus(is_open=await is_voting_open(session), candidate_count=await candidate_count(session))

@router.post("/vote-candidates")
async def vote_candidates(payload: VoteCandidatesRequest, session: AsyncSession = Depends(get_session)):
    n = await set_candidates(session, payload.enrollment_ids)
    await session.commit()
    log.info("vote_candidates_set", count=n)
    return {"ok": True, "candidate_count": n}

# ---------- event timer ----------

@router.get("/event-timer", response_model=EventTimer)
async def event_timer(session: AsyncSession = Depends(get_session)):
    return EventTimer(deadline=await get_event_deadline(session))

@router.post("/event-timer", response_model=EventTimer)
async def set_event_timer(payload: EventTimerRequest, session: AsyncSession = Depends(get_session)):
    await set_event_deadline(session, payload.deadline)
    await session.commit()
    return EventTimer(deadline=await get_event_deadline(session))

# ---------- polling / webhooks ----------

@router.post("/poll-repos", response_model=PollSummary)
async def poll_repos(session: AsyncSession = Depends(get_session)):
    return await poll_all(session)

@router.post("/poll-repos/enqueue", status_code=202)
async def poll_repos_enqueue():
    job = q.enqueue(poll_repositories)
    return {"ok": True, "job_id": job.id}

@router.get("/webhook-status", response_model=WebhookStatus)
async def webhook_status():
    url = f"{settings.public_base_url.rstrip('/')}/webhooks/github"
    return WebhookStatus(
        webhook_url=url,
        is_configured=bool(settings.github_webhook_secret),
        instructions=[
            "Open the repository on GitHub and go to Settings > Webhooks > Add webhook.",
            f"Payload URL: {url}",
            "Content type: application/json",
            "Secret: the value of GITHUB_WEBHOOK_SECRET (leave empty if it is not set)",
            "Events: Just the push event.",
        ],
    )
