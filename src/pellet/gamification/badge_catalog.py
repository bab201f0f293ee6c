"""Badge catalog: 16 badges matching the mobile client's badge list.

Read-only configuration. A badge's criterion is either a single counter
threshold or a compound rule over two counters with a closeness bound.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CounterKind(str, Enum):
    GIVEN_COUNT = "given_count"
    POSITIVE_GIVEN_COUNT = "positive_given_count"
    POSITIVE_RECEIVED_COUNT = "positive_received_count"
    NEGATIVE_RECEIVED_COUNT = "negative_received_count"
    EXPERIENCE_EARNED = "experience_earned"


@dataclass(frozen=True)
class SimpleCriterion:
    """counter >= threshold"""

    counter: CounterKind
    threshold: int


@dataclass(frozen=True)
class CompoundCriterion:
    """Both counters >= threshold and |a - b| <= closeness_bound."""

    counter_a: CounterKind
    counter_b: CounterKind
    threshold: int
    closeness_bound: int


BadgeCriterion = SimpleCriterion | CompoundCriterion


@dataclass(frozen=True)
class BadgeDefinition:
    slug: str
    name: str
    description: str
    icon: str
    rarity: str
    criterion: BadgeCriterion


BALANCED_CLOSENESS_BOUND = 2

BADGE_CATALOG: tuple[BadgeDefinition, ...] = (
    # Tags given
    BadgeDefinition(
        slug="first-tag",
        name="First Tag",
        description="Tagged your first driver",
        icon="\U0001F3AF",
        rarity="common",
        criterion=SimpleCriterion(CounterKind.GIVEN_COUNT, 1),
    ),
    BadgeDefinition(
        slug="tag-master",
        name="Tag Master",
        description="Tagged 10 drivers",
        icon="\U0001F3C6",
        rarity="uncommon",
        criterion=SimpleCriterion(CounterKind.GIVEN_COUNT, 10),
    ),
    BadgeDefinition(
        slug="tag-legend",
        name="Tag Legend",
        description="Tagged 50 drivers",
        icon="\U0001F451",
        rarity="rare",
        criterion=SimpleCriterion(CounterKind.GIVEN_COUNT, 50),
    ),
    BadgeDefinition(
        slug="first-positive",
        name="First Positive",
        description="Gave your first positive tag",
        icon="\U0001F44D",
        rarity="common",
        criterion=SimpleCriterion(CounterKind.POSITIVE_GIVEN_COUNT, 1),
    ),
    BadgeDefinition(
        slug="positivity-spreader",
        name="Positivity Spreader",
        description="Gave 10 positive tags",
        icon="\U0001F60A",
        rarity="uncommon",
        criterion=SimpleCriterion(CounterKind.POSITIVE_GIVEN_COUNT, 10),
    ),
    # Tags received
    BadgeDefinition(
        slug="road-angel",
        name="Road Angel",
        description="Received 5 positive tags",
        icon="\U0001F607",
        rarity="rare",
        criterion=SimpleCriterion(CounterKind.POSITIVE_RECEIVED_COUNT, 5),
    ),
    BadgeDefinition(
        slug="road-menace",
        name="Road Menace",
        description="Received 5 negative tags",
        icon="\U0001F608",
        rarity="uncommon",
        criterion=SimpleCriterion(CounterKind.NEGATIVE_RECEIVED_COUNT, 5),
    ),
    BadgeDefinition(
        slug="infamous-driver",
        name="Infamous Driver",
        description="Received 20 negative tags",
        icon="\U0001F480",
        rarity="epic",
        criterion=SimpleCriterion(CounterKind.NEGATIVE_RECEIVED_COUNT, 20),
    ),
    BadgeDefinition(
        slug="balanced-driver",
        name="Balanced Driver",
        description="Received about as many positive as negative tags (at least 5 each)",
        icon="⚖️",
        rarity="legendary",
        criterion=CompoundCriterion(
            CounterKind.NEGATIVE_RECEIVED_COUNT,
            CounterKind.POSITIVE_RECEIVED_COUNT,
            threshold=5,
            closeness_bound=BALANCED_CLOSENESS_BOUND,
        ),
    ),
    # Experience
    BadgeDefinition(
        slug="rookie-reporter",
        name="Rookie Reporter",
        description="Earned 100 experience points",
        icon="\U0001F530",
        rarity="common",
        criterion=SimpleCriterion(CounterKind.EXPERIENCE_EARNED, 100),
    ),
    BadgeDefinition(
        slug="experienced-reporter",
        name="Experienced Reporter",
        description="Earned 500 experience points",
        icon="\U0001F4CA",
        rarity="uncommon",
        criterion=SimpleCriterion(CounterKind.EXPERIENCE_EARNED, 500),
    ),
    BadgeDefinition(
        slug="expert-reporter",
        name="Expert Reporter",
        description="Earned 1,000 experience points",
        icon="\U0001F4C8",
        rarity="rare",
        criterion=SimpleCriterion(CounterKind.EXPERIENCE_EARNED, 1000),
    ),
    BadgeDefinition(
        slug="master-reporter",
        name="Master Reporter",
        description="Earned 5,000 experience points",
        icon="\U0001F393",
        rarity="epic",
        criterion=SimpleCriterion(CounterKind.EXPERIENCE_EARNED, 5000),
    ),
    BadgeDefinition(
        slug="legendary-reporter",
        name="Legendary Reporter",
        description="Earned 10,000 experience points",
        icon="\U0001F3C5",
        rarity="legendary",
        criterion=SimpleCriterion(CounterKind.EXPERIENCE_EARNED, 10000),
    ),
    # Levels, expressed as the experience each level starts at
    BadgeDefinition(
        slug="level-5-achiever",
        name="Level 5 Achiever",
        description="Reached level 5",
        icon="5️⃣",
        rarity="rare",
        criterion=SimpleCriterion(CounterKind.EXPERIENCE_EARNED, 1000),
    ),
    BadgeDefinition(
        slug="level-10-achiever",
        name="Level 10 Achiever",
        description="Reached level 10",
        icon="\U0001F51F",
        rarity="epic",
        criterion=SimpleCriterion(CounterKind.EXPERIENCE_EARNED, 10000),
    ),
)

BADGES_BY_SLUG: dict[str, BadgeDefinition] = {b.slug: b for b in BADGE_CATALOG}


def get_badge(slug: str) -> BadgeDefinition | None:
    """Fetch a badge definition by slug."""
    return BADGES_BY_SLUG.get(slug)
