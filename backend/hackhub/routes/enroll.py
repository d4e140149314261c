from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from hackhub.auth_deps import get_current_user
from hackhub.db import get_session
from hackhub.models.enrollment import Enrollment
from hackhub.models.user import User
from hackhub.schemas.enrollment import EnrollRequest, EnrollmentPublic
from hackhub.services.enrollments import get_enrollment, link_repo
from hackhub.services.github import MalformedRepoUrl

router = APIRouter(prefix="/enroll", tags=["enroll"])

def to_enrollment_public(e: Enrollment) -> EnrollmentPublic:
    return EnrollmentPublic(
        id=e.id, user_id=e.user_id, repo_url=e.repo_url,
        is_voting_candidate=e.is_voting_candidate, created_at=e.created_at, updated_at=e.updated_at,
    )

@router.get("", response_model=EnrollmentPublic | None)
async def my_enrollment(user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    e = await get_enrollment(session, user.id)
    return to_enrollment_public(e) if e else None

@router.post("", response_model=EnrollmentPublic)
async def enroll(payload: EnrollRequest, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    try:
        e = await link_repo(session, user.id, payload.repo_url)
    except MalformedRepoUrl as err:
        raise HTTPException(status_code=422, detail=str(err))
    await session.commit()
    await session.refresh(e)
    return to_enrollment_public(e)
