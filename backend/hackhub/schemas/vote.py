from __future__ import annotations
from pydantic import BaseModel
from uuid import UUID

class VoteCreate(BaseModel):
    candidate_id: UUID

class CandidatePublic(BaseModel):
    id: UUID
    name: str | None
    image: str | None
    repo_url: str | None

class VoteStatus(BaseModel):
    is_open: bool
    candidates: list[CandidatePublic]
    my_vote_id: UUID | None = None
