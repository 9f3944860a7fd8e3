"""Project schemas."""

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional


class ProjectCreate(BaseModel):
    """Schema for creating a project."""
    title: str
    description: str = ""

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title cannot be empty")
        return v


class ProjectResponse(BaseModel):
    """Schema for project response."""
    id: str
    title: str
    description: Optional[str] = ""
    head_version: int
    current_version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
