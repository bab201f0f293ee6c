"""Request/response schemas for tag endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from pellet.domain import Polarity, TagEvent


class TagSubmitRequest(BaseModel):
    submitter_id: str
    jurisdiction: str = Field("", max_length=8)
    plate: str = Field("", max_length=16)
    reason: str = Field("", max_length=500)
    polarity: Polarity
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    tag_id: str | None = Field(None, max_length=64, description="Client-generated id; reuse it when retrying")


class TagSubmitResponse(BaseModel):
    tag_id: str
    success: bool
    exp_gained: int
    leveled_up: bool
    level: int
    new_badges: list[str]
    duplicate: bool = False
    target_user_id: str | None = None


class TagResponse(BaseModel):
    id: str
    jurisdiction: str
    plate: str
    creator_id: str
    polarity: Polarity
    reason: str
    created_at: datetime
    latitude: float | None = None
    longitude: float | None = None
    target_user_id: str | None = None

    @classmethod
    def from_event(cls, event: TagEvent) -> TagResponse:
        return cls(
            id=event.id,
            jurisdiction=event.target.jurisdiction,
            plate=event.target.plate,
            creator_id=event.creator_id,
            polarity=event.polarity,
            reason=event.reason,
            created_at=event.created_at,
            latitude=event.coordinate.latitude if event.coordinate else None,
            longitude=event.coordinate.longitude if event.coordinate else None,
            target_user_id=event.target_user_id,
        )


class TagListResponse(BaseModel):
    tags: list[TagResponse]
    total: int
