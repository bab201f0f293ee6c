"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from pellet.gamification.schemas import LevelProgressResponse


class RegisterRequest(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=64)
    email: str | None = Field(None, max_length=255)
    plate: str | None = Field(None, max_length=16)
    jurisdiction: str | None = Field(None, max_length=8)


class UserResponse(BaseModel):
    id: str
    display_name: str
    jurisdiction: str | None = None
    plate: str | None = None
    negative_credits: int
    positive_credits: int
    positive_received: int
    negative_received: int
    total_given: int
    positive_given: int
    negative_given: int
    badge_count: int
    progress: LevelProgressResponse
    created_at: datetime | None = None
