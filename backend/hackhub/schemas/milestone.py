from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from uuid import UUID
from datetime import datetime
from hackhub.services.matching import InvalidPatternError, compile_pattern

def _valid_pattern(v: str | None) -> str | None:
    if v is None:
        return v
    try:
        compile_pattern(v)
    except InvalidPatternError as e:
        raise ValueError(str(e))
    return v

class MilestoneCreate(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    description: str | None = None
    label_pattern: str = Field(min_length=1, max_length=255, description="Case-insensitive regex searched in commit messages, e.g. '#M1'")
    order: int = 0
    points: int = Field(default=1, ge=1)

    @field_validator("label_pattern")
    @classmethod
    def pattern_compiles(cls, v: str):
        return _valid_pattern(v)

class MilestoneUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    label_pattern: str | None = Field(default=None, min_length=1, max_length=255)
    order: int | None = None
    points: int | None = Field(default=None, ge=1)

    @field_validator("label_pattern")
    @classmethod
    def pattern_compiles(cls, v: str | None):
        return _valid_pattern(v)

class MilestonePublic(BaseModel):
    id: UUID
    title: str
    description: str | None
    label_pattern: str
    order: int
    points: int
    created_at: datetime
    updated_at: datetime
