"""SqlTagStore tests against a real PostgreSQL database.

Set PELLET_TEST_DATABASE_URL (postgresql+asyncpg://...) to run them. The
schema is dropped and recreated for every test.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pellet.db import models  # noqa: F401
from pellet.db.base import Base
from pellet.domain import AwardOutcome, PlateIdentity, Polarity, TagEvent, UserSnapshot
from pellet.store.errors import BalanceExhausted, DuplicateIdentityError, UserNotFound
from pellet.store.sql import SqlTagStore
from pellet.tagging.service import submit_tag
from pellet.tagging.validator import TagRequest

DATABASE_URL = os.environ.get("PELLET_TEST_DATABASE_URL")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not DATABASE_URL, reason="PELLET_TEST_DATABASE_URL not set"),
]

NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def sql_store(session_factory) -> AsyncGenerator[SqlTagStore, None]:
    async with session_factory() as session:
        yield SqlTagStore(session)


def _user(user_id: str, plate: str | None = None, jurisdiction: str = "CA", **fields) -> UserSnapshot:
    return UserSnapshot(
        id=user_id,
        display_name=user_id.title(),
        identity=PlateIdentity(jurisdiction, plate) if plate else None,
        created_at=NOW,
        **fields,
    )


class TestUsers:
    @pytest.mark.asyncio
    async def test_create_and_lookup(self, sql_store):
        await sql_store.create_user(_user("alice", plate="ABC123", negative_credits=10, positive_credits=5))

        user = await sql_store.get_user("alice")
        assert user.negative_credits == 10
        assert user.identity == PlateIdentity("CA", "ABC123")

        found = await sql_store.find_user_by_identity(PlateIdentity("CA", "ABC123"))
        assert found.id == "alice"
        assert await sql_store.find_user_by_identity(PlateIdentity("NY", "ABC123")) is None

    @pytest.mark.asyncio
    async def test_duplicate_identity(self, sql_store):
        await sql_store.create_user(_user("alice", plate="ABC123"))
        with pytest.raises(DuplicateIdentityError):
            await sql_store.create_user(_user("imposter", plate="ABC123"))


class TestCounters:
    @pytest.mark.asyncio
    async def test_debit_guard(self, sql_store):
        await sql_store.create_user(_user("alice", negative_credits=1))

        balances = await sql_store.adjust_user_balance("alice", Polarity.NEGATIVE, -1, count_given=True)
        assert balances.negative_credits == 0
        with pytest.raises(BalanceExhausted):
            await sql_store.adjust_user_balance("alice", Polarity.NEGATIVE, -1, count_given=True)

        user = await sql_store.get_user("alice")
        assert user.negative_credits == 0
        assert user.total_given == 1

    @pytest.mark.asyncio
    async def test_unknown_user(self, sql_store):
        with pytest.raises(UserNotFound):
            await sql_store.adjust_user_balance("ghost", Polarity.NEGATIVE, -1)
        with pytest.raises(UserNotFound):
            await sql_store.increment_received_rating("ghost", Polarity.POSITIVE)

    @pytest.mark.asyncio
    async def test_keyed_debit_and_credit_apply_once(self, sql_store):
        await sql_store.create_user(_user("alice", negative_credits=3))
        await sql_store.create_user(_user("bob"))

        first = await sql_store.adjust_user_balance(
            "alice", Polarity.NEGATIVE, -1, count_given=True, idempotency_key="debit:t1"
        )
        again = await sql_store.adjust_user_balance(
            "alice", Polarity.NEGATIVE, -1, count_given=True, idempotency_key="debit:t1"
        )
        assert first.negative_credits == 2
        assert again is None

        assert await sql_store.increment_received_rating("bob", Polarity.NEGATIVE, idempotency_key="credit:t1")
        assert await sql_store.increment_received_rating("bob", Polarity.NEGATIVE, idempotency_key="credit:t1") is None

        alice = await sql_store.get_user("alice")
        assert (alice.negative_credits, alice.total_given) == (2, 1)
        assert (await sql_store.get_user("bob")).negative_received == 1

    @pytest.mark.asyncio
    async def test_rejected_debit_releases_its_key(self, sql_store):
        await sql_store.create_user(_user("alice", negative_credits=0))
        with pytest.raises(BalanceExhausted):
            await sql_store.adjust_user_balance("alice", Polarity.NEGATIVE, -1, idempotency_key="debit:t1")

        await sql_store.adjust_user_balance("alice", Polarity.NEGATIVE, 1)
        balances = await sql_store.adjust_user_balance("alice", Polarity.NEGATIVE, -1, idempotency_key="debit:t1")
        assert balances.negative_credits == 0

    @pytest.mark.asyncio
    async def test_keyed_write_for_unknown_user(self, sql_store):
        with pytest.raises(UserNotFound):
            await sql_store.adjust_user_balance("ghost", Polarity.NEGATIVE, -1, idempotency_key="debit:t1")
        with pytest.raises(UserNotFound):
            await sql_store.increment_received_rating("ghost", Polarity.NEGATIVE, idempotency_key="credit:t1")

    @pytest.mark.asyncio
    async def test_concurrent_debits_never_overdraw(self, session_factory):
        async with session_factory() as session:
            await SqlTagStore(session).create_user(_user("alice", negative_credits=1))

        async def debit():
            async with session_factory() as session:
                try:
                    await SqlTagStore(session).adjust_user_balance("alice", Polarity.NEGATIVE, -1)
                except BalanceExhausted:
                    return False
                return True

        results = await asyncio.gather(*(debit() for _ in range(5)))
        assert results.count(True) == 1

        async with session_factory() as session:
            assert (await SqlTagStore(session).get_user("alice")).negative_credits == 0

    @pytest.mark.asyncio
    async def test_concurrent_received_increments(self, session_factory):
        async with session_factory() as session:
            await SqlTagStore(session).create_user(_user("bob"))

        async def bump():
            async with session_factory() as session:
                await SqlTagStore(session).increment_received_rating("bob", Polarity.POSITIVE)

        await asyncio.gather(*(bump() for _ in range(10)))

        async with session_factory() as session:
            assert (await SqlTagStore(session).get_user("bob")).positive_received == 10


class TestExperience:
    @pytest.mark.asyncio
    async def test_idempotent_award(self, sql_store):
        await sql_store.create_user(_user("alice"))
        first = await sql_store.add_experience("alice", 25, idempotency_key="tag:t1", source="tag", source_id="t1")
        again = await sql_store.add_experience("alice", 25, idempotency_key="tag:t1", source="tag", source_id="t1")

        assert (first.previous, first.current) == (0, 25)
        assert again is None
        assert (await sql_store.get_user("alice")).experience == 25
        history = await sql_store.list_experience_history("alice")
        assert [e.source_id for e in history] == ["t1"]

    @pytest.mark.asyncio
    async def test_unknown_user_is_not_reported_as_granted(self, sql_store):
        with pytest.raises(UserNotFound):
            await sql_store.add_experience("ghost", 25, idempotency_key="tag:t1", source="tag", source_id="t1")

    @pytest.mark.asyncio
    async def test_level_never_lowers(self, sql_store):
        await sql_store.create_user(_user("alice", experience=500, level=4))
        await sql_store.set_experience_and_level("alice", 120, 2)
        user = await sql_store.get_user("alice")
        assert (user.experience, user.level) == (500, 4)


class TestBadges:
    @pytest.mark.asyncio
    async def test_award_once(self, sql_store):
        await sql_store.create_user(_user("alice"))
        assert await sql_store.record_badge_award("alice", "first-tag") is AwardOutcome.AWARDED
        assert await sql_store.record_badge_award("alice", "first-tag") is AwardOutcome.ALREADY_AWARDED

        awards = await sql_store.list_badge_awards("alice")
        assert [a.badge_slug for a in awards] == ["first-tag"]
        assert (await sql_store.get_user("alice")).badges == frozenset({"first-tag"})

    @pytest.mark.asyncio
    async def test_unknown_user(self, sql_store):
        with pytest.raises(UserNotFound):
            await sql_store.record_badge_award("ghost", "first-tag")


class TestTagEvents:
    @pytest.mark.asyncio
    async def test_equal_timestamps_keep_insertion_order(self, sql_store):
        await sql_store.create_user(_user("alice"))
        for tag_id in ("zz", "aa", "mm"):
            await sql_store.create_tag_event(TagEvent(
                id=tag_id,
                target=PlateIdentity("NY", "XYZ789"),
                creator_id="alice",
                polarity=Polarity.NEGATIVE,
                reason="Tailgating",
                created_at=NOW,
            ))

        assert [e.id for e in await sql_store.list_tag_events()] == ["zz", "aa", "mm"]


class TestSubmission:
    @pytest.mark.asyncio
    async def test_end_to_end(self, sql_store):
        await sql_store.create_user(_user("alice", plate="ABC123", negative_credits=10, positive_credits=5))
        await sql_store.create_user(_user("bob", plate="XYZ789", jurisdiction="NY"))

        request = TagRequest(
            submitter_id="alice",
            jurisdiction="NY",
            plate="xyz-789",
            reason="Cut me off",
            polarity=Polarity.NEGATIVE,
            tag_id="tag-1",
        )
        result = await submit_tag(sql_store, request, now=NOW)
        retry = await submit_tag(sql_store, request, now=NOW)

        assert result.exp_gained == 25
        assert result.new_badges == ["first-tag"]
        assert retry.duplicate is True

        alice = await sql_store.get_user("alice")
        assert alice.negative_credits == 9
        assert alice.experience == 25
        assert (await sql_store.get_user("bob")).negative_received == 1

        events = await sql_store.list_tag_events()
        assert [e.id for e in events] == ["tag-1"]
        assert events[0].target_user_id == "bob"
