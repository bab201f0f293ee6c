"""User registration and profile lookup.

New drivers start with a fixed grant of negative and positive credits
taken from settings. The plate they register is their identity key:
incoming tags for that plate credit their received counters.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog

from pellet.config import get_settings
from pellet.domain import UserSnapshot
from pellet.gamification.level_thresholds import compute_level
from pellet.store.base import TagStore
from pellet.store.errors import UserNotFound
from pellet.tagging.errors import InvalidJurisdiction, InvalidPlate
from pellet.tagging.validator import JURISDICTIONS, PLATE_MAX_LENGTH, PLATE_MIN_LENGTH, parse_identity

logger = structlog.get_logger()


async def register_user(
    store: TagStore,
    display_name: str,
    *,
    email: str | None = None,
    plate: str | None = None,
    jurisdiction: str | None = None,
    user_id: str | None = None,
    now: datetime | None = None,
) -> UserSnapshot:
    """Create a driver with the starting credit grant.

    Raises InvalidJurisdiction / InvalidPlate for a malformed plate, and
    DuplicateIdentityError when the plate is already registered.
    """
    settings = get_settings()
    identity = None
    if plate:
        identity = parse_identity(plate, jurisdiction)
        if identity is None or identity.jurisdiction not in JURISDICTIONS:
            raise InvalidJurisdiction("Please select a state")
        if not PLATE_MIN_LENGTH <= len(identity.plate) <= PLATE_MAX_LENGTH:
            raise InvalidPlate("Please enter a valid license plate number")

    user = UserSnapshot(
        id=user_id or str(uuid.uuid4()),
        display_name=display_name.strip(),
        identity=identity,
        email=email,
        negative_credits=settings.initial_negative_credits,
        positive_credits=settings.initial_positive_credits,
        created_at=now or datetime.now(timezone.utc),
    )
    created = await store.create_user(user)
    logger.info("user_registered", user_id=created.id, plate=identity.key if identity else None)
    return created


async def get_profile(store: TagStore, user_id: str) -> dict:
    """Public profile: counters plus level progress."""
    user = await store.get_user(user_id)
    if user is None:
        raise UserNotFound(user_id)
    return {
        "id": user.id,
        "display_name": user.display_name,
        "jurisdiction": user.identity.jurisdiction if user.identity else None,
        "plate": user.identity.plate if user.identity else None,
        "negative_credits": user.negative_credits,
        "positive_credits": user.positive_credits,
        "positive_received": user.positive_received,
        "negative_received": user.negative_received,
        "total_given": user.total_given,
        "positive_given": user.positive_given,
        "negative_given": user.negative_given,
        "badge_count": len(user.badges),
        "progress": compute_level(user.experience),
        "created_at": user.created_at,
    }
