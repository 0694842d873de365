"""
Shared route dependencies.

    DbSession    request-scoped SQLAlchemy session
    Pagination   ?page=&per_page=
    ClubFilters  ?q=&location=&genre=&min_members=&max_members=
    ActiveUser   bearer token -> active User (401/403 otherwise)

plus the get_club_or_404 / get_event_or_404 lookups, which treat clubs
with deleted_at set as gone.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from bookclub.database import get_db
from bookclub.models import Club, Event, User
from bookclub.services.security import verify_token_type

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Query parameters
# =============================================================================


class PaginationParams:
    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="1-indexed page number"),
        per_page: int = Query(default=10, ge=1, le=100, description="Page size (max 100)"),
    ) -> None:
        self.page = page
        self.per_page = per_page

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.per_page


Pagination = Annotated[PaginationParams, Depends()]


class ClubSearchParams:
    """
    Optional, combinable filters for GET /clubs/.

    location and genre are case-insensitive substring matches; q searches
    name and description. The member bounds compare against members_count,
    which includes pending members.
    """

    def __init__(
        self,
        q: str | None = Query(default=None, min_length=1, max_length=100, examples=["dune"]),
        location: str | None = Query(default=None, min_length=1, max_length=100, examples=["lisbon"]),
        genre: str | None = Query(default=None, min_length=1, max_length=100, examples=["fantasy"]),
        min_members: int | None = Query(default=None, ge=0),
        max_members: int | None = Query(default=None, ge=0),
    ) -> None:
        self.q = q
        self.location = location
        self.genre = genre
        self.min_members = min_members
        self.max_members = max_members

    @property
    def has_filters(self) -> bool:
        bounds = (self.min_members, self.max_members)
        return bool(self.q or self.location or self.genre) or any(b is not None for b in bounds)


ClubFilters = Annotated[ClubSearchParams, Depends()]


# =============================================================================
# Authentication
# =============================================================================

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: DbSession,
) -> User:
    """Resolve the access token's "sub" claim to a User, or 401."""
    rejected = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = verify_token_type(token, "access")
    try:
        user_id = int(payload["sub"]) if payload else None
    except (KeyError, TypeError, ValueError):
        user_id = None

    user = db.get(User, user_id) if user_id is not None else None
    if user is None:
        raise rejected
    return user


def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return current_user


ActiveUser = Annotated[User, Depends(get_current_active_user)]


# =============================================================================
# Lookups
# =============================================================================


def _not_found(kind: str, ident: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{kind} with id {ident} not found",
    )


def get_club_or_404(db: Session, club_id: int) -> Club:
    club = db.get(Club, club_id)
    if club is None or club.deleted_at is not None:
        raise _not_found("Club", club_id)
    return club


def get_event_or_404(db: Session, event_id: int) -> Event:
    """Events of a closed club are reported as missing too."""
    event = db.get(Event, event_id)
    if event is None or event.club.deleted_at is not None:
        raise _not_found("Event", event_id)
    return event
