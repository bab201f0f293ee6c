"""Economy ledger: persist the tag, debit the submitter, credit the target.

Each of the three steps is a separate store write. A failure in a later
step does not undo an earlier one. Debit and credit are keyed on the tag id
(debit:{tag}, credit:{tag}) so a retry applies each at most once.
"""

from __future__ import annotations

import dataclasses

from pellet.domain import Balances, Polarity, ReceivedCounters, TagEvent, UserSnapshot
from pellet.store.base import TagStore
from pellet.store.errors import BalanceExhausted

_CREDIT_FIELD = {
    Polarity.NEGATIVE: "negative_credits",
    Polarity.POSITIVE: "positive_credits",
}
_GIVEN_FIELD = {
    Polarity.NEGATIVE: "negative_given",
    Polarity.POSITIVE: "positive_given",
}
_RECEIVED_FIELD = {
    Polarity.NEGATIVE: "negative_received",
    Polarity.POSITIVE: "positive_received",
}


def apply_balance_change(
    user: UserSnapshot, polarity: Polarity, delta: int, count_given: bool = False
) -> UserSnapshot:
    """Return a copy of user with delta applied to one credit balance."""
    field = _CREDIT_FIELD[polarity]
    balance = getattr(user, field) + delta
    if balance < 0:
        raise BalanceExhausted(user.id, polarity.value)
    changes: dict[str, int] = {field: balance}
    if count_given:
        given = _GIVEN_FIELD[polarity]
        changes["total_given"] = user.total_given + 1
        changes[given] = getattr(user, given) + 1
    return dataclasses.replace(user, **changes)


def apply_received(user: UserSnapshot, polarity: Polarity) -> UserSnapshot:
    """Return a copy of user with one more received tag of this polarity."""
    field = _RECEIVED_FIELD[polarity]
    return dataclasses.replace(user, **{field: getattr(user, field) + 1})


def balances_of(user: UserSnapshot) -> Balances:
    return Balances(negative_credits=user.negative_credits, positive_credits=user.positive_credits)


def received_of(user: UserSnapshot) -> ReceivedCounters:
    return ReceivedCounters(positive_received=user.positive_received, negative_received=user.negative_received)


class EconomyLedger:
    """The three ledger writes implied by an accepted tag."""

    def __init__(self, store: TagStore) -> None:
        self.store = store

    async def persist(self, event: TagEvent) -> str:
        return await self.store.create_tag_event(event)

    async def debit(self, event: TagEvent) -> Balances | None:
        """Spend one credit. The store re-checks the balance inside the write."""
        return await self.store.adjust_user_balance(
            event.creator_id,
            event.polarity,
            -1,
            count_given=True,
            idempotency_key=f"debit:{event.id}",
        )

    async def credit(self, event: TagEvent) -> ReceivedCounters | None:
        """Bump the target's received counter; anonymous plates are skipped."""
        if event.target_user_id is None:
            return None
        return await self.store.increment_received_rating(
            event.target_user_id, event.polarity, idempotency_key=f"credit:{event.id}"
        )
