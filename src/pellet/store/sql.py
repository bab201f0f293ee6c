"""PostgreSQL TagStore on an async SQLAlchemy session.

Every public method commits its own write. Counter updates are single
UPDATE ... SET col = col + n statements so concurrent submissions never
lose increments.
"""

from __future__ import annotations

import contextlib
import functools
from collections import defaultdict
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pellet.db import models
from pellet.domain import (
    AwardOutcome,
    BadgeAward,
    Balances,
    Coordinate,
    ExperienceEntry,
    ExperienceUpdate,
    PlateIdentity,
    Polarity,
    ReceivedCounters,
    TagEvent,
    TagEventFilter,
    UserSnapshot,
)
from pellet.store.errors import (
    BalanceExhausted,
    DuplicateIdentityError,
    DuplicateTagError,
    StoreUnavailable,
    UserNotFound,
)

_CREDIT_COLUMNS = {
    Polarity.NEGATIVE: models.User.negative_credits,
    Polarity.POSITIVE: models.User.positive_credits,
}
_GIVEN_COLUMNS = {
    Polarity.NEGATIVE: models.User.negative_given,
    Polarity.POSITIVE: models.User.positive_given,
}
_RECEIVED_COLUMNS = {
    Polarity.NEGATIVE: models.User.negative_received,
    Polarity.POSITIVE: models.User.positive_received,
}


def _user_snapshot(row: models.User, badges: frozenset[str] = frozenset()) -> UserSnapshot:
    identity = None
    if row.jurisdiction and row.plate:
        identity = PlateIdentity(jurisdiction=row.jurisdiction, plate=row.plate)
    return UserSnapshot(
        id=row.id,
        display_name=row.display_name,
        identity=identity,
        email=row.email,
        negative_credits=row.negative_credits,
        positive_credits=row.positive_credits,
        experience=row.experience,
        level=row.level,
        positive_received=row.positive_received,
        negative_received=row.negative_received,
        total_given=row.total_given,
        positive_given=row.positive_given,
        negative_given=row.negative_given,
        badges=badges,
        created_at=row.created_at,
    )


def _tag_event(row: models.TagEvent) -> TagEvent:
    coordinate = None
    if row.latitude is not None and row.longitude is not None:
        coordinate = Coordinate(latitude=row.latitude, longitude=row.longitude)
    return TagEvent(
        id=row.id,
        target=PlateIdentity(jurisdiction=row.target_jurisdiction, plate=row.target_plate),
        creator_id=row.creator_id,
        polarity=Polarity(row.polarity),
        reason=row.reason,
        created_at=row.created_at,
        coordinate=coordinate,
        target_user_id=row.target_user_id,
    )


def _translate_errors(fn):
    """Re-raise driver failures as StoreUnavailable so callers only handle StoreError."""

    @functools.wraps(fn)
    async def wrapper(self, *args, **kwargs):
        try:
            return await fn(self, *args, **kwargs)
        except SQLAlchemyError as exc:
            with contextlib.suppress(SQLAlchemyError):
                await self.db.rollback()
            raise StoreUnavailable(str(exc)) from exc

    return wrapper


class SqlTagStore:
    """TagStore implementation over the users / tag_events / user_badges tables."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _badges_for(self, user_id: str) -> frozenset[str]:
        result = await self.db.execute(
            select(models.UserBadge.badge_slug).where(models.UserBadge.user_id == user_id)
        )
        return frozenset(result.scalars())

    async def _user_exists(self, user_id: str) -> bool:
        exists = await self.db.execute(select(models.User.id).where(models.User.id == user_id))
        return exists.scalar_one_or_none() is not None

    async def _raise_missing_or(self, user_id: str, exc: Exception) -> None:
        if not await self._user_exists(user_id):
            raise UserNotFound(user_id)
        raise exc

    async def _claim_economy_key(self, user_id: str, polarity: Polarity, delta: int, key: str) -> bool:
        """Add the economy ledger row for key in the open transaction.

        False means the key was already applied. The caller commits the row
        together with its counter update.
        """
        existing = await self.db.execute(
            select(models.EconomyLedger.id).where(models.EconomyLedger.idempotency_key == key)
        )
        if existing.scalar_one_or_none() is not None:
            return False

        self.db.add(models.EconomyLedger(
            user_id=user_id,
            polarity=polarity.value,
            delta=delta,
            idempotency_key=key,
            created_at=datetime.now(timezone.utc),
        ))
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            if not await self._user_exists(user_id):
                raise UserNotFound(user_id) from None
            return False  # Race: another worker applied the same key
        return True

    # --- users ---

    @_translate_errors
    async def create_user(self, user: UserSnapshot) -> UserSnapshot:
        row = models.User(
            id=user.id,
            display_name=user.display_name,
            email=user.email,
            jurisdiction=user.identity.jurisdiction if user.identity else None,
            plate=user.identity.plate if user.identity else None,
            identity_key=user.identity.key if user.identity else None,
            negative_credits=user.negative_credits,
            positive_credits=user.positive_credits,
            experience=user.experience,
            level=user.level,
            created_at=user.created_at or datetime.now(timezone.utc),
        )
        self.db.add(row)
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise DuplicateIdentityError(user.identity.key if user.identity else user.id) from exc
        return _user_snapshot(row)

    @_translate_errors
    async def get_user(self, user_id: str) -> UserSnapshot | None:
        result = await self.db.execute(
            select(models.User).where(models.User.id == user_id).execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return _user_snapshot(row, await self._badges_for(row.id))

    @_translate_errors
    async def find_user_by_identity(self, identity: PlateIdentity) -> UserSnapshot | None:
        result = await self.db.execute(
            select(models.User)
            .where(models.User.identity_key == identity.key)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return _user_snapshot(row, await self._badges_for(row.id))

    @_translate_errors
    async def list_users(self) -> list[UserSnapshot]:
        result = await self.db.execute(
            select(models.User)
            .order_by(models.User.created_at, models.User.id)
            .execution_options(populate_existing=True)
        )
        rows = result.scalars().all()

        badge_result = await self.db.execute(select(models.UserBadge.user_id, models.UserBadge.badge_slug))
        badges: dict[str, set[str]] = defaultdict(set)
        for user_id, slug in badge_result:
            badges[user_id].add(slug)

        return [_user_snapshot(r, frozenset(badges.get(r.id, ()))) for r in rows]

    # --- tag events ---

    @_translate_errors
    async def create_tag_event(self, event: TagEvent) -> str:
        self.db.add(models.TagEvent(
            id=event.id,
            target_jurisdiction=event.target.jurisdiction,
            target_plate=event.target.plate,
            target_key=event.target.key,
            target_user_id=event.target_user_id,
            creator_id=event.creator_id,
            polarity=event.polarity.value,
            reason=event.reason,
            latitude=event.coordinate.latitude if event.coordinate else None,
            longitude=event.coordinate.longitude if event.coordinate else None,
            created_at=event.created_at,
        ))
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise DuplicateTagError(event.id) from exc
        return event.id

    @_translate_errors
    async def get_tag_event(self, tag_id: str) -> TagEvent | None:
        result = await self.db.execute(select(models.TagEvent).where(models.TagEvent.id == tag_id))
        row = result.scalar_one_or_none()
        return _tag_event(row) if row else None

    @_translate_errors
    async def list_tag_events(self, flt: TagEventFilter | None = None) -> list[TagEvent]:
        query = select(models.TagEvent).order_by(models.TagEvent.created_at, models.TagEvent.seq)
        if flt is not None:
            if flt.polarity is not None:
                query = query.where(models.TagEvent.polarity == flt.polarity.value)
            if flt.creator_id is not None:
                query = query.where(models.TagEvent.creator_id == flt.creator_id)
            if flt.target_key is not None:
                query = query.where(models.TagEvent.target_key == flt.target_key)
            if flt.since is not None:
                query = query.where(models.TagEvent.created_at >= flt.since)
        result = await self.db.execute(query)
        return [_tag_event(r) for r in result.scalars()]

    # --- counters ---

    @_translate_errors
    async def adjust_user_balance(
        self,
        user_id: str,
        polarity: Polarity,
        delta: int,
        *,
        count_given: bool = False,
        idempotency_key: str | None = None,
    ) -> Balances | None:
        if idempotency_key is not None and not await self._claim_economy_key(
            user_id, polarity, delta, idempotency_key
        ):
            return None

        column = _CREDIT_COLUMNS[polarity]
        values = {column: column + delta}
        if count_given:
            given = _GIVEN_COLUMNS[polarity]
            values[models.User.total_given] = models.User.total_given + 1
            values[given] = given + 1

        stmt = update(models.User).where(models.User.id == user_id)
        if delta < 0:
            # Guard inside the write: concurrent debits cannot overdraw
            stmt = stmt.where(column >= -delta)
        stmt = stmt.values(values).returning(models.User.negative_credits, models.User.positive_credits)

        result = await self.db.execute(stmt)
        row = result.one_or_none()
        if row is None:
            await self.db.rollback()
            await self._raise_missing_or(user_id, BalanceExhausted(user_id, polarity.value))
        await self.db.commit()
        return Balances(negative_credits=row.negative_credits, positive_credits=row.positive_credits)

    @_translate_errors
    async def increment_received_rating(
        self, user_id: str, polarity: Polarity, *, idempotency_key: str | None = None
    ) -> ReceivedCounters | None:
        if idempotency_key is not None and not await self._claim_economy_key(
            user_id, polarity, 1, idempotency_key
        ):
            return None

        column = _RECEIVED_COLUMNS[polarity]
        result = await self.db.execute(
            update(models.User)
            .where(models.User.id == user_id)
            .values({column: column + 1})
            .returning(models.User.positive_received, models.User.negative_received)
        )
        row = result.one_or_none()
        if row is None:
            await self.db.rollback()
            raise UserNotFound(user_id)
        await self.db.commit()
        return ReceivedCounters(positive_received=row.positive_received, negative_received=row.negative_received)

    @_translate_errors
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
        existing = await self.db.execute(
            select(models.ExperienceLedger.id).where(models.ExperienceLedger.idempotency_key == idempotency_key)
        )
        if existing.scalar_one_or_none() is not None:
            return None

        self.db.add(models.ExperienceLedger(
            user_id=user_id,
            amount=amount,
            source=source,
            source_id=source_id,
            description=description,
            idempotency_key=idempotency_key,
            created_at=datetime.now(timezone.utc),
        ))
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            if not await self._user_exists(user_id):
                raise UserNotFound(user_id) from None
            return None  # Race: another worker applied the same key

        result = await self.db.execute(
            update(models.User)
            .where(models.User.id == user_id)
            .values(experience=models.User.experience + amount)
            .returning(models.User.experience)
        )
        current = result.scalar_one_or_none()
        if current is None:
            await self.db.rollback()
            raise UserNotFound(user_id)
        await self.db.commit()
        return ExperienceUpdate(previous=current - amount, current=current)

    @_translate_errors
    async def set_experience_and_level(self, user_id: str, experience: int, level: int) -> None:
        result = await self.db.execute(
            update(models.User)
            .where(models.User.id == user_id)
            .values(
                experience=func.greatest(models.User.experience, experience),
                level=func.greatest(models.User.level, level),
            )
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise UserNotFound(user_id)
        await self.db.commit()

    @_translate_errors
    async def list_experience_history(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> list[ExperienceEntry]:
        result = await self.db.execute(
            select(models.ExperienceLedger)
            .where(models.ExperienceLedger.user_id == user_id)
            .order_by(models.ExperienceLedger.created_at.desc(), models.ExperienceLedger.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [
            ExperienceEntry(
                user_id=e.user_id,
                amount=e.amount,
                source=e.source,
                source_id=e.source_id,
                description=e.description,
                created_at=e.created_at,
            )
            for e in result.scalars()
        ]

    # --- badges ---

    @_translate_errors
    async def record_badge_award(self, user_id: str, badge_slug: str) -> AwardOutcome:
        existing = await self.db.execute(
            select(models.UserBadge.id).where(
                models.UserBadge.user_id == user_id,
                models.UserBadge.badge_slug == badge_slug,
            )
        )
        if existing.scalar_one_or_none() is not None:
            return AwardOutcome.ALREADY_AWARDED

        self.db.add(models.UserBadge(
            user_id=user_id,
            badge_slug=badge_slug,
            earned_at=datetime.now(timezone.utc),
        ))
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            if not await self._user_exists(user_id):
                raise UserNotFound(user_id) from None
            return AwardOutcome.ALREADY_AWARDED  # Race condition: badge already awarded
        return AwardOutcome.AWARDED

    @_translate_errors
    async def list_badge_awards(self, user_id: str) -> list[BadgeAward]:
        result = await self.db.execute(
            select(models.UserBadge)
            .where(models.UserBadge.user_id == user_id)
            .order_by(models.UserBadge.earned_at, models.UserBadge.id)
        )
        return [
            BadgeAward(user_id=b.user_id, badge_slug=b.badge_slug, earned_at=b.earned_at)
            for b in result.scalars()
        ]
