from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from hackhub.auth_deps import get_current_user
from hackhub.db import get_session
from hackhub.models.user import User
from hackhub.routes.auth import to_user_public
from hackhub.schemas.enrollment import ProfilePublic, ProfileRepo, ProfileUpdate
from hackhub.services.enrollments import get_enrollment, link_repo
from hackhub.services.github import MalformedRepoUrl

router = APIRouter(prefix="/profile", tags=["profile"])

async def _profile(session: AsyncSession, user: User) -> ProfilePublic:
    e = await get_enrollment(session, user.id)
    return ProfilePublic(user=to_user_public(user), enrollment=ProfileRepo(repo_url=e.repo_url if e else None))

@router.get("", response_model=ProfilePublic)
async def get_profile(user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    return await _profile(session, user)

@router.patch("", response_model=ProfilePublic)
async def update_profile(payload: ProfileUpdate, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    sent = payload.model_fields_set
    if "name" in sent:
        user.name = payload.name
    if "image" in sent:
        user.image = payload.image
    if "repo_url" in sent:
        try:
            await link_repo(session, user.id, payload.repo_url)
        except MalformedRepoUrl as err:
            raise HTTPException(status_code=422, detail=str(err))
    await session.commit()
    await session.refresh(user)
    return await _profile(session, user)
