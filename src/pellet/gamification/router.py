"""Gamification API endpoints: badge catalog, level table, per-user progress."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pellet.dependencies import get_store
from pellet.gamification.badge_catalog import BADGE_CATALOG, BadgeDefinition, CompoundCriterion, get_badge
from pellet.gamification.level_thresholds import LEVEL_THRESHOLDS, MAX_LEVEL, compute_level
from pellet.gamification.schemas import (
    AllBadgesResponse,
    AllLevelsResponse,
    BadgeCriterionResponse,
    BadgeDefinitionResponse,
    EarnedBadgeResponse,
    ExperienceHistoryEntry,
    ExperienceHistoryResponse,
    LevelEntry,
    LevelProgressResponse,
    UserBadgesResponse,
)
from pellet.store.base import TagStore
from pellet.store.errors import UserNotFound

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


def _badge_response(badge: BadgeDefinition) -> BadgeDefinitionResponse:
    crit = badge.criterion
    if isinstance(crit, CompoundCriterion):
        criterion = BadgeCriterionResponse(
            kind="compound",
            counters=[crit.counter_a.value, crit.counter_b.value],
            threshold=crit.threshold,
            closeness_bound=crit.closeness_bound,
        )
    else:
        criterion = BadgeCriterionResponse(kind="simple", counters=[crit.counter.value], threshold=crit.threshold)
    return BadgeDefinitionResponse(
        slug=badge.slug,
        name=badge.name,
        description=badge.description,
        icon=badge.icon,
        rarity=badge.rarity,
        criterion=criterion,
    )


# ── Public endpoints ──


@router.get("/badges", response_model=AllBadgesResponse)
async def list_badges():
    """Full badge catalog in evaluation order."""
    return AllBadgesResponse(badges=[_badge_response(b) for b in BADGE_CATALOG])


@router.get("/levels", response_model=AllLevelsResponse)
async def list_levels():
    return AllLevelsResponse(
        levels=[LevelEntry(level=i + 1, threshold=t) for i, t in enumerate(LEVEL_THRESHOLDS)],
        max_level=MAX_LEVEL,
    )


# ── Per-user endpoints ──


@router.get("/users/{user_id}/badges", response_model=UserBadgesResponse)
async def user_badges(user_id: str, store: TagStore = Depends(get_store)):
    if await store.get_user(user_id) is None:
        raise UserNotFound(user_id)
    earned = []
    for award in await store.list_badge_awards(user_id):
        badge = get_badge(award.badge_slug)
        if badge is None:
            continue  # retired slug
        earned.append(EarnedBadgeResponse(
            slug=badge.slug,
            name=badge.name,
            icon=badge.icon,
            rarity=badge.rarity,
            earned_at=award.earned_at,
        ))
    return UserBadgesResponse(earned=earned, total_available=len(BADGE_CATALOG), total_earned=len(earned))


@router.get("/users/{user_id}/progress", response_model=LevelProgressResponse)
async def user_progress(user_id: str, store: TagStore = Depends(get_store)):
    """Level and progress toward the next level."""
    user = await store.get_user(user_id)
    if user is None:
        raise UserNotFound(user_id)
    return compute_level(user.experience)


@router.get("/users/{user_id}/experience/history", response_model=ExperienceHistoryResponse)
async def experience_history(
    user_id: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    store: TagStore = Depends(get_store),
):
    """Experience awards, newest first."""
    if await store.get_user(user_id) is None:
        raise UserNotFound(user_id)
    entries = await store.list_experience_history(user_id, limit=per_page, offset=(page - 1) * per_page)
    return ExperienceHistoryResponse(
        entries=[
            ExperienceHistoryEntry(
                amount=e.amount,
                source=e.source,
                source_id=e.source_id,
                description=e.description,
                created_at=e.created_at,
            )
            for e in entries
        ],
        page=page,
        per_page=per_page,
    )
