"""Pydantic response models for leaderboard and analytics endpoints."""

from __future__ import annotations

from pydantic import BaseModel


# ── Leaderboards ──


class PlateLeaderboardEntry(BaseModel):
    rank: int
    plate: str
    jurisdiction: str
    count: int
    target_user_id: str | None = None


class PlateLeaderboardResponse(BaseModel):
    entries: list[PlateLeaderboardEntry]


class ExperienceLeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    display_name: str
    experience: int
    level: int


class ExperienceLeaderboardResponse(BaseModel):
    entries: list[ExperienceLeaderboardEntry]


# ── Geography ──


class RegionCount(BaseModel):
    region: str
    total: int
    positive: int
    negative: int


class RegionBreakdownResponse(BaseModel):
    regions: list[RegionCount]
    total_events: int
    without_location: int
    unclassified: int


# ── Time buckets ──


class DayCount(BaseModel):
    day: str
    count: int


class HistogramResponse(BaseModel):
    timezone: str
    hours: list[int]
    peak_hour: int | None = None
    days: list[DayCount]
    peak_day: str | None = None


# ── Rankings ──


class TopTaggerEntry(BaseModel):
    rank: int
    user_id: str
    display_name: str
    count: int
    positive: int
    negative: int


class TopTaggersResponse(BaseModel):
    entries: list[TopTaggerEntry]


class TopReasonEntry(BaseModel):
    rank: int
    reason: str
    count: int


class TopReasonsResponse(BaseModel):
    entries: list[TopReasonEntry]


# ── Summary ──


class TagRollup(BaseModel):
    total: int
    positive: int
    negative: int
    positive_percent: int
    negative_percent: int
    today: int
    last_7_days: int
    last_30_days: int
    geo_tagged: int


class UserRollup(BaseModel):
    total: int
    new_today: int
    new_last_7_days: int
    new_last_30_days: int
    level_distribution: dict[str, int]
    average_experience: float
    average_level: float
    average_badges: float


class JurisdictionCount(BaseModel):
    jurisdiction: str
    users: int


class SummaryResponse(BaseModel):
    generated_at: str
    tags: TagRollup
    users: UserRollup
    top_jurisdictions: list[JurisdictionCount]
