"""Store-level failures. Anything raised here aborts the current write only."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for store failures (unavailable backend, constraint violations)."""


class DuplicateTagError(StoreError):
    def __init__(self, tag_id: str) -> None:
        super().__init__(f"Tag event already exists: {tag_id}")
        self.tag_id = tag_id


class DuplicateIdentityError(StoreError):
    def __init__(self, identity_key: str) -> None:
        super().__init__(f"Plate already registered: {identity_key}")
        self.identity_key = identity_key


class UserNotFound(StoreError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class BalanceExhausted(StoreError):
    """A debit would have driven a credit balance below zero."""

    def __init__(self, user_id: str, polarity: str) -> None:
        super().__init__(f"No {polarity} credits left for user {user_id}")
        self.user_id = user_id
        self.polarity = polarity


class StoreUnavailable(StoreError):
    """The backend could not be reached or rejected the statement."""
