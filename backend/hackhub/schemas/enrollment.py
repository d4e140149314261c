from __future__ import annotations
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from hackhub.schemas.auth import UserPublic

class EnrollRequest(BaseModel):
    repo_url: str | None = Field(default=None, max_length=255, description="https://github.com/<owner>/<repo>; empty unlinks")

class EnrollmentPublic(BaseModel):
    id: UUID
    user_id: UUID
    repo_url: str | None
    is_voting_candidate: bool
    created_at: datetime
    updated_at: datetime

class ProfileUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=120)
    image: str | None = None
    repo_url: str | None = Field(default=None, max_length=255)

class ProfileRepo(BaseModel):
    repo_url: str | None = None

class ProfilePublic(BaseModel):
    user: UserPublic
    enrollment: ProfileRepo
