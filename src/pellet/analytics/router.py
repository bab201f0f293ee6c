"""Leaderboard and analytics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pellet.analytics.schemas import (
    ExperienceLeaderboardResponse,
    HistogramResponse,
    PlateLeaderboardResponse,
    RegionBreakdownResponse,
    SummaryResponse,
    TopReasonsResponse,
    TopTaggersResponse,
)
from pellet.analytics.service import AnalyticsService
from pellet.dependencies import get_analytics_service
from pellet.domain import Polarity

router = APIRouter(prefix="/api/v1", tags=["Analytics"])

ORDER_PATTERN = "^(asc|desc)$"
WINDOW_PATTERN = "^(all|today|7d|30d)$"


@router.get("/leaderboard/plates", response_model=PlateLeaderboardResponse)
async def plates_leaderboard(
    polarity: Polarity | None = Query(None),
    order: str = Query("desc", pattern=ORDER_PATTERN),
    window: str = Query("all", pattern=WINDOW_PATTERN),
    limit: int = Query(50, ge=1, le=200),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Most (or least) tagged plates."""
    return await service.plate_leaderboard(polarity=polarity, order=order, window=window, limit=limit)


@router.get("/leaderboard/experience", response_model=ExperienceLeaderboardResponse)
async def experience_board(
    order: str = Query("desc", pattern=ORDER_PATTERN),
    limit: int = Query(50, ge=1, le=200),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.experience_leaderboard(order=order, limit=limit)


@router.get("/analytics/regions", response_model=RegionBreakdownResponse)
async def regions(
    polarity: Polarity | None = Query(None),
    window: str = Query("all", pattern=WINDOW_PATTERN),
    order: str | None = Query(None, pattern=ORDER_PATTERN),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Tag counts per coarse US region."""
    return await service.regions(polarity=polarity, window=window, order=order)


@router.get("/analytics/histograms", response_model=HistogramResponse)
async def histograms(
    polarity: Polarity | None = Query(None),
    window: str = Query("all", pattern=WINDOW_PATTERN),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Hour-of-day and day-of-week activity."""
    return await service.histograms(polarity=polarity, window=window)


@router.get("/analytics/top-taggers", response_model=TopTaggersResponse)
async def most_active_taggers(
    n: int | None = Query(None, ge=1, le=50),
    polarity: Polarity | None = Query(None),
    window: str = Query("all", pattern=WINDOW_PATTERN),
    order: str = Query("desc", pattern=ORDER_PATTERN),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.top_taggers(n=n, polarity=polarity, window=window, order=order)


@router.get("/analytics/top-reasons", response_model=TopReasonsResponse)
async def most_common_reasons(
    n: int | None = Query(None, ge=1, le=50),
    polarity: Polarity | None = Query(None),
    window: str = Query("all", pattern=WINDOW_PATTERN),
    order: str = Query("desc", pattern=ORDER_PATTERN),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.top_reasons(n=n, polarity=polarity, window=window, order=order)


@router.get("/analytics/summary", response_model=SummaryResponse)
async def summary(
    window: str = Query("all", pattern=WINDOW_PATTERN),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Headline counters for the analytics dashboard."""
    return await service.summary(window=window)
