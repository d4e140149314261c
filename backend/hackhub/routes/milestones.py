from __future__ import annotations
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from hackhub.db import get_session
from hackhub.models.milestone import Milestone
from hackhub.schemas.milestone import MilestonePublic

router = APIRouter(prefix="/milestones", tags=["milestones"])

def to_milestone_public(m: Milestone) -> MilestonePublic:
    return MilestonePublic(
        id=m.id, title=m.title, description=m.description, label_pattern=m.label_pattern,
        order=m.order, points=m.points, created_at=m.created_at, updated_at=m.updated_at,
    )

@router.get("", response_model=list[MilestonePublic])
async def list_milestones(session: AsyncSession = Depends(get_session)):
    rows = (await session.execute(select(Milestone).order_by(Milestone.order.asc(), Milestone.created_at.asc()))).scalars().all()
    return [to_milestone_public(m) for m in rows]
