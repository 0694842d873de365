"""
Auth Router

Account creation and JWT sessions for club members.

Endpoints:
- POST /auth/register - Create an account
- POST /auth/login - OAuth2 password flow (email in the "username" field)
- POST /auth/refresh - Trade a refresh token for a new access token
- POST /auth/logout - Forget the refresh cookie
- GET /auth/me - Who am I

Tokens:
=======
login hands out an access/refresh pair. The refresh token travels both in
the JSON body (for mobile clients) and in an httpOnly cookie (for the
browser app); /refresh accepts either.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from bookclub.config import get_settings
from bookclub.dependencies import ActiveUser, DbSession
from bookclub.models.user import User
from bookclub.schemas.user import (
    RefreshTokenRequest,
    TokenResponse,
    UserCreate,
    UserResponse,
)
from bookclub.services.rate_limiter import AUTH_LIMIT, limiter
from bookclub.services.security import (
    create_access_token,
    create_token_pair,
    hash_password,
    verify_password,
    verify_token_type,
)

logger = logging.getLogger(__name__)
settings = get_settings()

REFRESH_COOKIE = "refresh_token"

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"description": "Missing, invalid or expired credentials"},
        403: {"description": "Account is inactive"},
    },
)


# =============================================================================
# Helpers
# =============================================================================


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _ensure_active(user: User) -> None:
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )


def _access_token_lifetime() -> int:
    return settings.access_token_expire_minutes * 60


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        max_age=settings.refresh_token_expire_days * 86400,
    )


def _user_from_refresh_token(db: Session, token: str) -> User:
    """Resolve a refresh token to an active user, or raise 401/403."""
    payload = verify_token_type(token, "refresh")
    if payload is None:
        raise _unauthorized("Invalid or expired refresh token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token payload") from None

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")

    _ensure_active(user)
    return user


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    description="""
    Sign up with email, username and password.

    Passwords need 8+ characters with an uppercase letter, a lowercase
    letter and a digit. Usernames start with a letter and are stored
    lowercase.
    """,
    responses={409: {"description": "Email or username already in use"}},
)
@limiter.limit(AUTH_LIMIT)
def register(
    request: Request,
    user_data: UserCreate,
    db: DbSession,
) -> UserResponse:
    clash = db.execute(
        select(User.email, User.username).where(
            or_(User.email == user_data.email, User.username == user_data.username)
        )
    ).first()

    if clash is not None:
        detail = (
            "Email already registered"
            if clash.email == user_data.email
            else "Username already taken"
        )
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)

    user = User(
        email=user_data.email,
        username=user_data.username,
        hashed_password=hash_password(user_data.password),
        full_name=user_data.full_name,
        location=user_data.location,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"Account created: id={user.id} username={user.username}")
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    description="OAuth2 password flow. Put the email address in the `username` form field.",
)
@limiter.limit(AUTH_LIMIT)
def login(
    request: Request,
    response: Response,
    db: DbSession,
    form_data: OAuth2PasswordRequestForm = Depends(),
) -> TokenResponse:
    email = form_data.username
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    if user is None or not verify_password(form_data.password, user.hashed_password):
        logger.warning(f"Bad credentials for {email}")
        raise _unauthorized("Incorrect email or password")

    _ensure_active(user)

    tokens = create_token_pair(user.id)
    user.last_login_at = datetime.now(UTC)
    db.commit()

    _set_refresh_cookie(response, tokens["refresh_token"])
    logger.info(f"Login: user={user.id}")

    return TokenResponse(
        access_token=tokens["access_token"],
        token_type=tokens["token_type"],
        expires_in=_access_token_lifetime(),
        refresh_token=tokens["refresh_token"],
    )


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh the access token",
    description="Send the refresh token in the body, or rely on the cookie set at login.",
)
def refresh(
    request: Request,
    db: DbSession,
    body: RefreshTokenRequest | None = None,
) -> TokenResponse:
    token = (body.refresh_token if body else None) or request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise _unauthorized("Refresh token required")

    user = _user_from_refresh_token(db, token)

    logger.info(f"Access token refreshed: user={user.id}")
    return TokenResponse(
        access_token=create_access_token({"sub": str(user.id)}),
        expires_in=_access_token_lifetime(),
    )


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Log out",
    description="Drops the refresh cookie. Access tokens simply run out.",
)
def logout(
    response: Response,
    current_user: ActiveUser,
) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    logger.info(f"Logout: user={current_user.id}")


@router.get("/me", response_model=UserResponse, summary="Current account")
def me(current_user: ActiveUser) -> UserResponse:
    return UserResponse.model_validate(current_user)
