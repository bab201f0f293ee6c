"""Tag submission errors.

Validation errors are raised before any write and carry a message that can
be shown to the driver as-is. TagSubmissionFailed is raised after the tag
was persisted but a later write failed; its user-facing message is generic.
"""

from __future__ import annotations


class TagValidationError(Exception):
    """Base class for deterministic, non-retryable rejections."""

    code = "invalid_tag"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidPlate(TagValidationError):
    code = "invalid_plate"


class InvalidJurisdiction(InvalidPlate):
    code = "invalid_jurisdiction"


class MissingReason(TagValidationError):
    code = "missing_reason"


class SelfTagRejected(TagValidationError):
    code = "self_tag_rejected"


class InsufficientBalance(TagValidationError):
    code = "insufficient_balance"


class TagSubmissionFailed(Exception):
    """A write after the tag was persisted failed. Earlier writes stay applied."""

    user_message = "Something went wrong while saving your tag. Please try again."

    def __init__(self, tag_id: str, stage: str) -> None:
        super().__init__(f"Tag {tag_id} failed during {stage}")
        self.tag_id = tag_id
        self.stage = stage
