"""Experience awards for accepted tags, with level-up detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pellet.domain import Polarity, TagEvent
from pellet.gamification.level_thresholds import level_for
from pellet.store.base import TagStore

logger = logging.getLogger(__name__)

NEGATIVE_REWARD = 25
POSITIVE_REWARD = 30
LOCATION_BONUS = 5
DETAILED_REASON_BONUS = 10
DETAILED_REASON_MIN_LENGTH = 20  # strictly longer than this earns the bonus


def compute_tag_experience(polarity: Polarity, has_location: bool, reason: str) -> int:
    """Flat experience award for one accepted tag."""
    award = POSITIVE_REWARD if polarity is Polarity.POSITIVE else NEGATIVE_REWARD
    if has_location:
        award += LOCATION_BONUS
    if len(reason) > DETAILED_REASON_MIN_LENGTH:
        award += DETAILED_REASON_BONUS
    return award


@dataclass(frozen=True)
class ProgressionResult:
    award: int
    previous_experience: int
    experience: int
    previous_level: int
    level: int

    @property
    def leveled_up(self) -> bool:
        return self.level > self.previous_level


def apply_experience(previous_experience: int, award: int) -> ProgressionResult:
    """Pure progression step: new total, new level, and whether a level was crossed."""
    experience = previous_experience + award
    return ProgressionResult(
        award=award,
        previous_experience=previous_experience,
        experience=experience,
        previous_level=level_for(previous_experience),
        level=level_for(experience),
    )


async def grant_tag_experience(store: TagStore, user_id: str, event: TagEvent) -> ProgressionResult | None:
    """Grant the experience for one tag. Returns None if it was already granted.

    1. Atomically add the award (idempotent on the tag id)
    2. Recompute level from the returned total
    3. Persist experience + level
    """
    award = compute_tag_experience(event.polarity, event.coordinate is not None, event.reason)
    update = await store.add_experience(
        user_id,
        award,
        idempotency_key=f"tag:{event.id}",
        source="tag",
        source_id=event.id,
        description=f"{event.polarity.value.capitalize()} tag on {event.target.key}",
    )
    if update is None:
        logger.warning("Experience for tag %s already granted", event.id)
        return None

    result = apply_experience(update.previous, award)
    await store.set_experience_and_level(user_id, result.experience, result.level)
    return result
