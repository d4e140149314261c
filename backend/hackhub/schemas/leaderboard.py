from __future__ import annotations
from pydantic import BaseModel
from uuid import UUID
from datetime import datetime

class ActivityPublic(BaseModel):
    id: UUID
    milestone_id: UUID
    commit_hash: str | None
    commit_message: str
    timestamp: datetime

class LeaderboardRow(BaseModel):
    position: int
    enrollment_id: UUID
    user_id: UUID
    name: str | None
    image: str | None
    repo_url: str | None
    is_voting_candidate: bool
    score: int
    completed_count: int
    last_activity_time: datetime | None
    vote_count: int
    activities: list[ActivityPublic]

class LeaderboardResponse(BaseModel):
    rankings: list[LeaderboardRow]
    is_voting_open: bool
    total_milestones: int
    event_deadline: datetime | None
