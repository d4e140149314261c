from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Literal
from uuid import UUID
from datetime import datetime

ErrorKind = Literal["malformed_input", "not_found", "rate_limited", "timeout", "upstream", "persistence"]

class VoteControlRequest(BaseModel):
    action: Literal["OPEN", "CLOSE"]

class VoteControlStatus(BaseModel):
    is_open: bool
    candidate_count: int

class VoteCandidatesRequest(BaseModel):
    enrollment_ids: list[UUID] = Field(default_factory=list)

class EventTimerRequest(BaseModel):
    deadline: datetime | None = None  # null clears

class EventTimer(BaseModel):
    deadline: datetime | None

class PollResult(BaseModel):
    enrollment_id: UUID
    student: str
    repo: str
    commits_fetched: int
    commits_processed: int
    new_activities: int

class PollError(BaseModel):
    enrollment_id: UUID
    repo: str | None
    kind: ErrorKind
    error: str
    retryable: bool

class PollSummary(BaseModel):
    total_repos: int
    results: list[PollResult]
    errors: list[PollError]
    message: str

class WebhookStatus(BaseModel):
    webhook_url: str
    is_configured: bool
    instructions: list[str]
