"""ORM models for users, tag events, badge awards and the economy and experience ledgers."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Float,
    ForeignKey,
    Identity,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from pellet.db.base import Base


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """A registered driver with credit balances and denormalized counters."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True, unique=True)
    jurisdiction: Mapped[str | None] = mapped_column(String(2), nullable=True)
    plate: Mapped[str | None] = mapped_column(String(16), nullable=True)
    identity_key: Mapped[str | None] = mapped_column(String(24), nullable=True, unique=True)

    negative_credits: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    positive_credits: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    experience: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    level: Mapped[int] = mapped_column(Integer, default=1, server_default="1")

    positive_received: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    negative_received: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    total_given: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    positive_given: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    negative_given: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------------------------------------------------------
# Tag events
# ---------------------------------------------------------------------------


class TagEvent(Base):
    """Immutable record of one accepted tag."""

    __tablename__ = "tag_events"
    __table_args__ = (
        Index("ix_tag_events_target_key", "target_key"),
        Index("ix_tag_events_creator_id", "creator_id"),
        Index("ix_tag_events_created_at", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Insertion order, for ties on created_at
    seq: Mapped[int] = mapped_column(BigInteger, Identity(), nullable=False, unique=True)
    target_jurisdiction: Mapped[str] = mapped_column(String(2), nullable=False)
    target_plate: Mapped[str] = mapped_column(String(16), nullable=False)
    target_key: Mapped[str] = mapped_column(String(24), nullable=False)
    target_user_id: Mapped[str | None] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    creator_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    polarity: Mapped[str] = mapped_column(String(8), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------


class UserBadge(Base):
    """Permanent badge award. At most one row per (user, badge)."""

    __tablename__ = "user_badges"
    __table_args__ = (UniqueConstraint("user_id", "badge_slug", name="uq_user_badges_user_badge"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_slug: Mapped[str] = mapped_column(String(64), nullable=False)
    earned_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Experience ledger
# ---------------------------------------------------------------------------


class ExperienceLedger(Base):
    """Append-only experience awards; idempotency_key makes retries safe."""

    __tablename__ = "experience_ledger"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    source_id: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    idempotency_key: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


# ---------------------------------------------------------------------------
# Economy ledger
# ---------------------------------------------------------------------------


class EconomyLedger(Base):
    """One row per applied debit or credit of a tag, keyed 'debit:{tag}' / 'credit:{tag}'."""

    __tablename__ = "economy_ledger"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    polarity: Mapped[str] = mapped_column(String(8), nullable=False)
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
