"""Pydantic response models for gamification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


# --- Badge ---


class BadgeCriterionResponse(BaseModel):
    kind: str  # "simple" or "compound"
    counters: list[str]
    threshold: int
    closeness_bound: int | None = None


class BadgeDefinitionResponse(BaseModel):
    slug: str
    name: str
    description: str
    icon: str
    rarity: str
    criterion: BadgeCriterionResponse


class AllBadgesResponse(BaseModel):
    badges: list[BadgeDefinitionResponse]


class EarnedBadgeResponse(BaseModel):
    slug: str
    name: str
    icon: str
    rarity: str
    earned_at: datetime


class UserBadgesResponse(BaseModel):
    earned: list[EarnedBadgeResponse]
    total_available: int
    total_earned: int


# --- Levels / experience ---


class LevelEntry(BaseModel):
    level: int
    threshold: int


class AllLevelsResponse(BaseModel):
    levels: list[LevelEntry]
    max_level: int


class LevelProgressResponse(BaseModel):
    level: int
    experience: int
    exp_into_level: int
    exp_for_level: int
    next_level: int
    next_threshold: int
    progress: int


class ExperienceHistoryEntry(BaseModel):
    amount: int
    source: str
    source_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None


class ExperienceHistoryResponse(BaseModel):
    entries: list[ExperienceHistoryEntry]
    page: int
    per_page: int
