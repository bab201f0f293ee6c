"""Badge rule evaluation and idempotent award recording."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from pellet.domain import AwardOutcome, UserSnapshot
from pellet.gamification.badge_catalog import (
    BADGE_CATALOG,
    BadgeCriterion,
    BadgeDefinition,
    CompoundCriterion,
    CounterKind,
    SimpleCriterion,
)
from pellet.store.base import TagStore

logger = structlog.get_logger()


def counter_value(user: UserSnapshot, kind: CounterKind) -> int:
    """Read the cumulative counter a criterion refers to."""
    if kind is CounterKind.GIVEN_COUNT:
        return user.total_given
    if kind is CounterKind.POSITIVE_GIVEN_COUNT:
        return user.positive_given
    if kind is CounterKind.POSITIVE_RECEIVED_COUNT:
        return user.positive_received
    if kind is CounterKind.NEGATIVE_RECEIVED_COUNT:
        return user.negative_received
    if kind is CounterKind.EXPERIENCE_EARNED:
        return user.experience
    raise ValueError(f"Unknown counter: {kind}")


def criterion_met(criterion: BadgeCriterion, user: UserSnapshot) -> bool:
    if isinstance(criterion, SimpleCriterion):
        return counter_value(user, criterion.counter) >= criterion.threshold
    if isinstance(criterion, CompoundCriterion):
        a = counter_value(user, criterion.counter_a)
        b = counter_value(user, criterion.counter_b)
        return (
            a >= criterion.threshold
            and b >= criterion.threshold
            and abs(a - b) <= criterion.closeness_bound
        )
    raise TypeError(f"Unknown badge criterion: {criterion!r}")


def evaluate_badges(
    user: UserSnapshot,
    catalog: Iterable[BadgeDefinition] = BADGE_CATALOG,
) -> list[BadgeDefinition]:
    """Badges the user satisfies but does not hold yet, in catalog order."""
    return [
        badge
        for badge in catalog
        if badge.slug not in user.badges and criterion_met(badge.criterion, user)
    ]


async def award_new_badges(
    store: TagStore,
    user: UserSnapshot,
    catalog: Iterable[BadgeDefinition] = BADGE_CATALOG,
) -> list[str]:
    """Award every newly satisfied badge. Returns the slugs actually awarded.

    A badge the store reports as already held (e.g. awarded by a concurrent
    submission since the snapshot was taken) is skipped silently.
    """
    awarded: list[str] = []
    for badge in evaluate_badges(user, catalog):
        outcome = await store.record_badge_award(user.id, badge.slug)
        if outcome is AwardOutcome.AWARDED:
            logger.info("badge_awarded", user_id=user.id, badge=badge.slug, rarity=badge.rarity)
            awarded.append(badge.slug)
    return awarded
