from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field

class PushCommit(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str
    message: str | None = ""
    timestamp: str

class PushRepository(BaseModel):
    model_config = ConfigDict(extra="ignore")
    html_url: str
    full_name: str | None = None

class PushEvent(BaseModel):
    """The parts of a GitHub push payload we read."""
    model_config = ConfigDict(extra="ignore")
    ref: str | None = None
    repository: PushRepository
    commits: list[PushCommit] = Field(default_factory=list)
