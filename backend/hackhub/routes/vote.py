from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from hackhub.auth_deps import get_current_user, get_optional_user
from hackhub.db import get_session
from hackhub.models.user import User
from hackhub.schemas.vote import CandidatePublic, VoteCreate, VoteStatus
from hackhub.services.event_config import is_voting_open
from hackhub.services.voting import NotACandidate, VotingClosed, cast_vote, list_candidates, my_vote

router = APIRouter(prefix="/vote", tags=["vote"])

@router.get("/status", response_model=VoteStatus)
async def vote_status(user: User | None = Depends(get_optional_user), session: AsyncSession = Depends(get_session)):
    is_open = await is_voting_open(session)
    candidates = [
        CandidatePublic(id=e.id, name=e.user.name or e.user.email, image=e.user.image, repo_url=e.repo_url)
        for e in await list_candidates(session)
    ]
    mine = await my_vote(session, user.id) if user else None
    return VoteStatus(is_open=is_open, candidates=candidates, my_vote_id=mine.candidate_id if mine else None)

@router.post("", status_code=200)
async def vote(payload: VoteCreate, user: User = Depends(get_current_user), session: AsyncSession = Depends(get_session)):
    try:
        v = await cast_vote(session, voter_id=user.id, candidate_id=payload.candidate_id)
    except VotingClosed:
        raise HTTPException(status_code=403, detail="Voting is closed")
    except NotACandidate:
        raise HTTPException(status_code=400, detail="Invalid candidate")
    await session.commit()
    return {"ok": True, "candidate_id": str(v.candidate_id)}
