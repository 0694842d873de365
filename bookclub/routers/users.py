"""
Users Router

    GET  /users/me            own account
    PUT  /users/me            edit profile (email and username are fixed)
    PUT  /users/me/password   change password, current one required
    GET  /users/me/clubs      clubs I belong to, approved or pending
    GET  /users/{user_id}     public profile, read through the Redis cache
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from bookclub.config import get_settings
from bookclub.dependencies import ActiveUser, DbSession
from bookclub.models.user import User
from bookclub.schemas.club import ClubResponse
from bookclub.schemas.user import (
    PasswordChange,
    UserPublicResponse,
    UserResponse,
    UserUpdate,
)
from bookclub.services import membership
from bookclub.services.cache import cache_user, get_cached_user, invalidate_user_cache
from bookclub.services.rate_limiter import limiter
from bookclub.services.security import hash_password, verify_password

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse, summary="Own account")
@limiter.limit(settings.rate_limit_default)
def read_me(request: Request, current_user: ActiveUser) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.put("/me", response_model=UserResponse, summary="Edit own profile")
@limiter.limit(settings.rate_limit_write)
def update_me(
    request: Request,
    changes: UserUpdate,
    db: DbSession,
    current_user: ActiveUser,
) -> UserResponse:
    """Apply the fields that were sent and drop the cached public profile."""
    for field, value in changes.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)

    invalidate_user_cache(current_user.id)
    return UserResponse.model_validate(current_user)


@router.put(
    "/me/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change password",
    responses={400: {"description": "Current password is wrong"}},
)
@limiter.limit("5/minute")
def change_password(
    request: Request,
    body: PasswordChange,
    db: DbSession,
    current_user: ActiveUser,
) -> None:
    if not verify_password(body.current_password, current_user.hashed_password):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    current_user.hashed_password = hash_password(body.new_password)
    db.commit()
    logger.info(f"Password changed: user={current_user.id}")


@router.get("/me/clubs", response_model=list[ClubResponse], summary="My clubs")
@limiter.limit(settings.rate_limit_default)
def my_clubs(request: Request, db: DbSession, current_user: ActiveUser) -> list[ClubResponse]:
    return [ClubResponse.model_validate(c) for c in membership.list_user_clubs(db, current_user.id)]


@router.get(
    "/{user_id}",
    response_model=UserPublicResponse,
    summary="Public profile",
    responses={404: {"description": "No such active user"}},
)
@limiter.limit(settings.rate_limit_default)
def public_profile(request: Request, user_id: int, db: DbSession) -> UserPublicResponse:
    cached = get_cached_user(user_id)
    if cached is not None:
        return UserPublicResponse.model_validate(cached)

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"User with id {user_id} not found")

    profile = UserPublicResponse.model_validate(user)
    cache_user(user_id, profile.model_dump(mode="json"))
    return profile
