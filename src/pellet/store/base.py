"""The TagStore protocol every backend implements.

Each method is one independent write or read. Nothing here spans more than
one write, so callers must tolerate a failure between any two calls.
"""

from __future__ import annotations

from typing import Protocol

from pellet.domain import (
    AwardOutcome,
    BadgeAward,
    Balances,
    ExperienceEntry,
    ExperienceUpdate,
    PlateIdentity,
    Polarity,
    ReceivedCounters,
    TagEvent,
    TagEventFilter,
    UserSnapshot,
)


class TagStore(Protocol):
    # --- users ---

    async def create_user(self, user: UserSnapshot) -> UserSnapshot: ...

    async def get_user(self, user_id: str) -> UserSnapshot | None: ...

    async def find_user_by_identity(self, identity: PlateIdentity) -> UserSnapshot | None: ...

    async def list_users(self) -> list[UserSnapshot]: ...

    # --- tag events ---

    async def create_tag_event(self, event: TagEvent) -> str:
        """Persist a tag event. Raises DuplicateTagError if the id exists."""
        ...

    async def get_tag_event(self, tag_id: str) -> TagEvent | None: ...

    async def list_tag_events(self, flt: TagEventFilter | None = None) -> list[TagEvent]:
        """Return matching events oldest first."""
        ...

    # --- counters ---

    async def adjust_user_balance(
        self,
        user_id: str,
        polarity: Polarity,
        delta: int,
        *,
        count_given: bool = False,
        idempotency_key: str | None = None,
    ) -> Balances | None:
        """Atomically add delta to a credit balance.

        Raises BalanceExhausted instead of going below zero. With
        count_given the given-tag counters are bumped in the same write.
        Returns None when idempotency_key was already applied.
        """
        ...

    async def increment_received_rating(
        self, user_id: str, polarity: Polarity, *, idempotency_key: str | None = None
    ) -> ReceivedCounters | None:
        """Bump one received counter. Returns None when idempotency_key was already applied."""
        ...

    async def add_experience(
        self,
        user_id: str,
        amount: int,
        *,
        idempotency_key: str,
        source: str,
        source_id: str,
        description: str = "",
    ) -> ExperienceUpdate | None:
        """Atomically add experience and append a ledger row.

        Returns None when idempotency_key was already applied.
        """
        ...

    async def set_experience_and_level(self, user_id: str, experience: int, level: int) -> None:
        """Raise experience and level to at least the given values (never lowers them)."""
        ...

    async def list_experience_history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[ExperienceEntry]: ...

    # --- badges ---

    async def record_badge_award(self, user_id: str, badge_slug: str) -> AwardOutcome: ...

    async def list_badge_awards(self, user_id: str) -> list[BadgeAward]:
        """Badges a user holds, oldest award first."""
        ...
