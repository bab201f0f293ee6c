"""Tag endpoints: submit, look up, list by plate or creator."""

from __future__ import annotations

import dataclasses

from fastapi import APIRouter, Depends, HTTPException, Query, status

from pellet.dependencies import get_store
from pellet.domain import Coordinate, Polarity
from pellet.store.base import TagStore
from pellet.store.errors import UserNotFound
from pellet.tagging.errors import InvalidJurisdiction
from pellet.tagging.schemas import TagListResponse, TagResponse, TagSubmitRequest, TagSubmitResponse
from pellet.tagging.service import list_tags_by_creator, list_tags_for_plate, submit_tag
from pellet.tagging.validator import JURISDICTIONS, TagRequest, parse_identity

router = APIRouter(prefix="/api/v1", tags=["Tags"])


@router.post("/tags", response_model=TagSubmitResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(body: TagSubmitRequest, store: TagStore = Depends(get_store)):
    """Submit a tag. Retrying with the same tag_id is safe."""
    coordinate = None
    if body.latitude is not None and body.longitude is not None:
        coordinate = Coordinate(latitude=body.latitude, longitude=body.longitude)
    request = TagRequest(
        submitter_id=body.submitter_id,
        jurisdiction=body.jurisdiction,
        plate=body.plate,
        reason=body.reason,
        polarity=body.polarity,
        coordinate=coordinate,
    )
    if body.tag_id:
        request = dataclasses.replace(request, tag_id=body.tag_id)
    result = await submit_tag(store, request)
    return dataclasses.asdict(result)


@router.get("/tags/{tag_id}", response_model=TagResponse)
async def get_tag(tag_id: str, store: TagStore = Depends(get_store)):
    event = await store.get_tag_event(tag_id)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")
    return TagResponse.from_event(event)


@router.get("/plates/{jurisdiction}/{plate}/tags", response_model=TagListResponse)
async def plate_tags(
    jurisdiction: str,
    plate: str,
    polarity: Polarity | None = Query(None),
    store: TagStore = Depends(get_store),
):
    """Tags received by a plate, newest first. Plate matching ignores case and dashes."""
    identity = parse_identity(plate, jurisdiction)
    if identity is None or identity.jurisdiction not in JURISDICTIONS:
        raise InvalidJurisdiction("Please select a state")
    events = await list_tags_for_plate(store, identity.key, polarity)
    return TagListResponse(tags=[TagResponse.from_event(e) for e in events], total=len(events))


@router.get("/users/{user_id}/tags", response_model=TagListResponse)
async def user_tags(
    user_id: str,
    polarity: Polarity | None = Query(None),
    store: TagStore = Depends(get_store),
):
    """Tags a user has given, newest first."""
    if await store.get_user(user_id) is None:
        raise UserNotFound(user_id)
    events = await list_tags_by_creator(store, user_id, polarity)
    return TagListResponse(tags=[TagResponse.from_event(e) for e in events], total=len(events))
