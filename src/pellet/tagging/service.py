"""Tag submission pipeline.

validate -> persist tag -> debit submitter -> credit target
-> progression -> badge evaluation

The tag id is the idempotency key. A retry of an id that was already
persisted resumes the chain: each stage is keyed on the tag id, so only the
stages a failed attempt did not reach are applied. Writes are never rolled
back; a failure after the tag was stored surfaces as TagSubmissionFailed
with the stage that broke.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import structlog

from pellet.domain import Polarity, TagEvent, TagEventFilter, UserSnapshot
from pellet.gamification.badge_service import award_new_badges
from pellet.gamification.xp_service import grant_tag_experience
from pellet.store.base import TagStore
from pellet.store.errors import DuplicateTagError, StoreError, UserNotFound
from pellet.tagging.errors import TagSubmissionFailed
from pellet.tagging.ledger import EconomyLedger
from pellet.tagging.validator import TagRequest, validate_tag

logger = structlog.get_logger()


@dataclass(frozen=True)
class SubmissionResult:
    tag_id: str
    success: bool
    exp_gained: int
    leveled_up: bool
    level: int
    new_badges: list[str] = field(default_factory=list)
    duplicate: bool = False
    target_user_id: str | None = None


async def submit_tag(store: TagStore, request: TagRequest, now: datetime | None = None) -> SubmissionResult:
    """Run one tag submission end to end.

    Raises TagValidationError before any write, UserNotFound for an unknown
    submitter, DuplicateTagError if the id belongs to another user's tag,
    and TagSubmissionFailed for failures after the tag was persisted.
    """
    submitter = await store.get_user(request.submitter_id)
    if submitter is None:
        raise UserNotFound(request.submitter_id)

    existing = await store.get_tag_event(request.tag_id)
    if existing is not None:
        if existing.creator_id != submitter.id:
            raise DuplicateTagError(request.tag_id)
        logger.info("tag_retry_resume", tag_id=request.tag_id, user_id=submitter.id)
        return await _apply_effects(store, existing, submitter, duplicate=True)

    validated = validate_tag(request, submitter, now=now)
    target = await store.find_user_by_identity(validated.target)

    event = TagEvent(
        id=validated.tag_id,
        target=validated.target,
        creator_id=submitter.id,
        polarity=validated.polarity,
        reason=validated.reason,
        created_at=validated.created_at,
        coordinate=validated.coordinate,
        target_user_id=target.id if target else None,
    )

    try:
        await EconomyLedger(store).persist(event)
    except DuplicateTagError:
        # Lost a race with a concurrent retry of the same submission
        stored = await store.get_tag_event(event.id)
        if stored is None or stored.creator_id != submitter.id:
            raise
        return await _apply_effects(store, stored, submitter, duplicate=True)

    return await _apply_effects(store, event, submitter)


async def _apply_effects(
    store: TagStore, event: TagEvent, submitter: UserSnapshot, duplicate: bool = False
) -> SubmissionResult:
    """Debit, credit, progression and badges for a persisted tag.

    Every stage is keyed on the tag id, so re-running this for a retry
    applies only the stages an earlier attempt did not finish.
    """
    ledger = EconomyLedger(store)
    stage = "debit"
    try:
        await ledger.debit(event)

        stage = "credit"
        await ledger.credit(event)

        stage = "progression"
        progression = await grant_tag_experience(store, submitter.id, event)

        stage = "badges"
        refreshed = await store.get_user(submitter.id)
        new_badges = await award_new_badges(store, refreshed) if refreshed else []
        if event.target_user_id is not None:
            target_now = await store.get_user(event.target_user_id)
            if target_now is not None:
                await award_new_badges(store, target_now)
    except StoreError as exc:
        logger.error(
            "tag_partial_failure",
            tag_id=event.id,
            user_id=submitter.id,
            stage=stage,
            retry=duplicate,
            error=str(exc),
            exc_info=exc,
        )
        raise TagSubmissionFailed(event.id, stage) from exc

    exp_gained = progression.award if progression else 0
    leveled_up = progression.leveled_up if progression else False
    if progression:
        level = progression.level
    else:
        level = refreshed.level if refreshed else submitter.level

    logger.info(
        "tag_submitted",
        tag_id=event.id,
        user_id=submitter.id,
        target=event.target.key,
        polarity=event.polarity.value,
        resolved_target=event.target_user_id is not None,
        exp_gained=exp_gained,
        leveled_up=leveled_up,
        new_badges=new_badges,
        duplicate=duplicate,
    )

    return SubmissionResult(
        tag_id=event.id,
        success=True,
        exp_gained=exp_gained,
        leveled_up=leveled_up,
        level=level,
        new_badges=new_badges,
        duplicate=duplicate,
        target_user_id=event.target_user_id,
    )


async def list_tags_for_plate(
    store: TagStore, identity_key: str, polarity: Polarity | None = None
) -> list[TagEvent]:
    """Tags received by a plate, newest first."""
    events = await store.list_tag_events(TagEventFilter(target_key=identity_key, polarity=polarity))
    return list(reversed(events))


async def list_tags_by_creator(
    store: TagStore, user_id: str, polarity: Polarity | None = None
) -> list[TagEvent]:
    """Tags a user has given, newest first."""
    events = await store.list_tag_events(TagEventFilter(creator_id=user_id, polarity=polarity))
    return list(reversed(events))
