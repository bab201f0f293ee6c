"""User endpoints: register and profile."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from pellet.dependencies import get_store
from pellet.store.base import TagStore
from pellet.users.schemas import RegisterRequest, UserResponse
from pellet.users.service import get_profile, register_user

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(body: RegisterRequest, store: TagStore = Depends(get_store)):
    """Register a driver with the starting credit grant."""
    user = await register_user(
        store,
        body.display_name,
        email=body.email,
        plate=body.plate,
        jurisdiction=body.jurisdiction,
    )
    return await get_profile(store, user.id)


@router.get("/{user_id}", response_model=UserResponse)
async def read_user(user_id: str, store: TagStore = Depends(get_store)):
    return await get_profile(store, user_id)
