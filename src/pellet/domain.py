"""Immutable records passed between the engine and the store.

The engine never holds live ORM rows: every step receives a snapshot,
computes, and hands the resulting mutation to the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Polarity(str, Enum):
    """Direction of a tag."""

    POSITIVE = "positive"
    NEGATIVE = "negative"


class AwardOutcome(str, Enum):
    AWARDED = "awarded"
    ALREADY_AWARDED = "already_awarded"


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class PlateIdentity:
    """Normalized jurisdiction + plate pair, e.g. ("CA", "7ABC123")."""

    jurisdiction: str
    plate: str

    @property
    def key(self) -> str:
        return f"{self.jurisdiction}-{self.plate}"


@dataclass(frozen=True)
class UserSnapshot:
    """Point-in-time view of a user's balances and counters."""

    id: str
    display_name: str
    identity: PlateIdentity | None = None
    email: str | None = None
    negative_credits: int = 0
    positive_credits: int = 0
    experience: int = 0
    level: int = 1
    positive_received: int = 0
    negative_received: int = 0
    total_given: int = 0
    positive_given: int = 0
    negative_given: int = 0
    badges: frozenset[str] = field(default_factory=frozenset)
    created_at: datetime | None = None

    def credits_for(self, polarity: Polarity) -> int:
        if polarity is Polarity.POSITIVE:
            return self.positive_credits
        return self.negative_credits


@dataclass(frozen=True)
class TagEvent:
    """A single accepted tag. Never mutated after creation."""

    id: str
    target: PlateIdentity
    creator_id: str
    polarity: Polarity
    reason: str
    created_at: datetime
    coordinate: Coordinate | None = None
    target_user_id: str | None = None


@dataclass(frozen=True)
class TagEventFilter:
    """Optional predicates for listing tag events. Unset fields match everything."""

    polarity: Polarity | None = None
    creator_id: str | None = None
    target_key: str | None = None
    since: datetime | None = None

    def matches(self, event: TagEvent) -> bool:
        if self.polarity is not None and event.polarity is not self.polarity:
            return False
        if self.creator_id is not None and event.creator_id != self.creator_id:
            return False
        if self.target_key is not None and event.target.key != self.target_key:
            return False
        if self.since is not None and event.created_at < self.since:
            return False
        return True


@dataclass(frozen=True)
class Balances:
    negative_credits: int
    positive_credits: int


@dataclass(frozen=True)
class ReceivedCounters:
    positive_received: int
    negative_received: int


@dataclass(frozen=True)
class ExperienceUpdate:
    """Result of an atomic experience increment."""

    previous: int
    current: int


@dataclass(frozen=True)
class ExperienceEntry:
    user_id: str
    amount: int
    source: str
    source_id: str
    description: str
    created_at: datetime


@dataclass(frozen=True)
class BadgeAward:
    user_id: str
    badge_slug: str
    earned_at: datetime
