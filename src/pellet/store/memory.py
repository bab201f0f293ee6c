"""In-process TagStore backed by dicts.

Rows are immutable snapshots replaced wholesale under a single lock, so
every counter mutation is atomic with respect to other coroutines.
"""

from __future__ import annotations

import asyncio
import dataclasses
from datetime import datetime, timezone

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
from pellet.store.errors import DuplicateIdentityError, DuplicateTagError, UserNotFound
from pellet.tagging.ledger import apply_balance_change, apply_received, balances_of, received_of


class MemoryTagStore:
    """TagStore implementation for local runs and tests."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users: dict[str, UserSnapshot] = {}
        self._events: dict[str, TagEvent] = {}
        self._ledger: list[ExperienceEntry] = []
        self._ledger_keys: set[str] = set()
        self._economy_keys: set[str] = set()
        self._awards: list[BadgeAward] = []

    def _require(self, user_id: str) -> UserSnapshot:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFound(user_id)
        return user

    # --- users ---

    async def create_user(self, user: UserSnapshot) -> UserSnapshot:
        async with self._lock:
            if user.identity is not None:
                for existing in self._users.values():
                    if existing.identity == user.identity:
                        raise DuplicateIdentityError(user.identity.key)
            if user.created_at is None:
                user = dataclasses.replace(user, created_at=datetime.now(timezone.utc))
            self._users[user.id] = user
            return user

    async def get_user(self, user_id: str) -> UserSnapshot | None:
        return self._users.get(user_id)

    async def find_user_by_identity(self, identity: PlateIdentity) -> UserSnapshot | None:
        for user in self._users.values():
            if user.identity == identity:
                return user
        return None

    async def list_users(self) -> list[UserSnapshot]:
        return list(self._users.values())

    # --- tag events ---

    async def create_tag_event(self, event: TagEvent) -> str:
        async with self._lock:
            if event.id in self._events:
                raise DuplicateTagError(event.id)
            self._events[event.id] = event
            return event.id

    async def get_tag_event(self, tag_id: str) -> TagEvent | None:
        return self._events.get(tag_id)

    async def list_tag_events(self, flt: TagEventFilter | None = None) -> list[TagEvent]:
        events = sorted(self._events.values(), key=lambda e: e.created_at)
        if flt is None:
            return events
        return [e for e in events if flt.matches(e)]

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
        async with self._lock:
            user = self._require(user_id)
            if idempotency_key in self._economy_keys:
                return None
            user = apply_balance_change(user, polarity, delta, count_given)
            self._users[user_id] = user
            if idempotency_key is not None:
                self._economy_keys.add(idempotency_key)
            return balances_of(user)

    async def increment_received_rating(
        self, user_id: str, polarity: Polarity, *, idempotency_key: str | None = None
    ) -> ReceivedCounters | None:
        async with self._lock:
            user = self._require(user_id)
            if idempotency_key in self._economy_keys:
                return None
            user = apply_received(user, polarity)
            self._users[user_id] = user
            if idempotency_key is not None:
                self._economy_keys.add(idempotency_key)
            return received_of(user)

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
        async with self._lock:
            user = self._require(user_id)
            if idempotency_key in self._ledger_keys:
                return None
            self._ledger_keys.add(idempotency_key)
            self._ledger.append(ExperienceEntry(
                user_id=user_id,
                amount=amount,
                source=source,
                source_id=source_id,
                description=description,
                created_at=datetime.now(timezone.utc),
            ))
            previous = user.experience
            self._users[user_id] = dataclasses.replace(user, experience=previous + amount)
            return ExperienceUpdate(previous=previous, current=previous + amount)

    async def set_experience_and_level(self, user_id: str, experience: int, level: int) -> None:
        async with self._lock:
            user = self._require(user_id)
            self._users[user_id] = dataclasses.replace(
                user,
                experience=max(user.experience, experience),
                level=max(user.level, level),
            )

    async def list_experience_history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[ExperienceEntry]:
        entries = [e for e in reversed(self._ledger) if e.user_id == user_id]
        return entries[offset:offset + limit]

    # --- badges ---

    async def record_badge_award(self, user_id: str, badge_slug: str) -> AwardOutcome:
        async with self._lock:
            user = self._require(user_id)
            if badge_slug in user.badges:
                return AwardOutcome.ALREADY_AWARDED
            self._users[user_id] = dataclasses.replace(user, badges=user.badges | {badge_slug})
            self._awards.append(BadgeAward(user_id, badge_slug, datetime.now(timezone.utc)))
            return AwardOutcome.AWARDED

    async def list_badge_awards(self, user_id: str) -> list[BadgeAward]:
        return [a for a in self._awards if a.user_id == user_id]
