"""Tag validation: format and business rules checked before any write.

Checks run in a fixed order (jurisdiction, plate, reason, self-tag,
balance) so that the first failing rule determines the error.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pellet.domain import Coordinate, PlateIdentity, Polarity, UserSnapshot
from pellet.tagging.errors import (
    InsufficientBalance,
    InvalidJurisdiction,
    InvalidPlate,
    MissingReason,
    SelfTagRejected,
)

JURISDICTIONS: frozenset[str] = frozenset({
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
    "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD",
    "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
    "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC",
    "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
    "DC",
})

PLATE_MIN_LENGTH = 3
PLATE_MAX_LENGTH = 8

_SEPARATORS = re.compile(r"[\s\-]+")


def normalize_plate(plate: str) -> str:
    """Uppercase and drop spaces and dashes: 'abc-123' -> 'ABC123'."""
    return _SEPARATORS.sub("", plate).upper()


def parse_identity(plate: str | None, jurisdiction: str | None = None) -> PlateIdentity | None:
    """Build a normalized identity from stored or submitted plate text.

    Accepts a bare plate with a separate jurisdiction, or a combined
    'CA-ABC123' string when the jurisdiction is missing.
    """
    if not plate or not plate.strip():
        return None
    text = plate.strip().upper()
    code = (jurisdiction or "").strip().upper()
    if not code and "-" in text:
        head, _, rest = text.partition("-")
        if head.strip() in JURISDICTIONS:
            code, text = head.strip(), rest
    if not code:
        return None
    return PlateIdentity(jurisdiction=code, plate=normalize_plate(text))


@dataclass(frozen=True)
class TagRequest:
    """A raw tag submission as received from a client."""

    submitter_id: str
    jurisdiction: str
    plate: str
    reason: str
    polarity: Polarity
    coordinate: Coordinate | None = None
    tag_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime | None = None


@dataclass(frozen=True)
class ValidatedTag:
    tag_id: str
    submitter_id: str
    target: PlateIdentity
    reason: str
    polarity: Polarity
    coordinate: Coordinate | None
    created_at: datetime


def validate_tag(request: TagRequest, submitter: UserSnapshot, now: datetime | None = None) -> ValidatedTag:
    """Validate a submission against the submitter's current snapshot.

    Raises a TagValidationError subclass on the first failing rule.
    Pure: performs no I/O.
    """
    code = (request.jurisdiction or "").strip().upper()
    if code not in JURISDICTIONS:
        raise InvalidJurisdiction("Please select a state")

    plate = normalize_plate(request.plate or "")
    if not plate:
        raise InvalidPlate("Please enter a license plate number")
    if not PLATE_MIN_LENGTH <= len(plate) <= PLATE_MAX_LENGTH:
        raise InvalidPlate("Please enter a valid license plate number")

    reason = (request.reason or "").strip()
    if not reason:
        raise MissingReason("Please provide a reason")

    target = PlateIdentity(jurisdiction=code, plate=plate)
    if submitter.identity is not None and submitter.identity == target:
        raise SelfTagRejected("You can't tag your own vehicle")

    if submitter.credits_for(request.polarity) <= 0:
        raise InsufficientBalance(
            f"You don't have any {request.polarity.value} pellets left. Purchase more in the shop."
        )

    created_at = request.created_at or now or datetime.now(timezone.utc)
    return ValidatedTag(
        tag_id=request.tag_id,
        submitter_id=submitter.id,
        target=target,
        reason=reason,
        polarity=request.polarity,
        coordinate=request.coordinate,
        created_at=created_at,
    )
