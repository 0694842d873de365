"""
Clubs Router

CRUD endpoints for book clubs.

Endpoints:
- GET /clubs/ - List clubs with pagination and filters
- POST /clubs/ - Create a club (caller becomes owner)
- GET /clubs/{club_id} - Get a club
- PUT /clubs/{club_id} - Update a club (owner only)
- DELETE /clubs/{club_id} - Close a club (owner only)

Business Rules:
- Club names are unique, also against closed clubs
- Closed clubs are invisible: every read returns 404
- owner_id and members_count are never written here; they belong to the
  membership service
"""

import logging
import math

from fastapi import APIRouter, Request, status
from sqlalchemy import Select, func, or_, select

from bookclub.config import get_settings
from bookclub.dependencies import ActiveUser, ClubFilters, ClubSearchParams, DbSession, Pagination, get_club_or_404
from bookclub.models.club import Club
from bookclub.schemas.club import ClubCreate, ClubListResponse, ClubResponse, ClubUpdate
from bookclub.services import membership
from bookclub.services.errors import ClubNameTaken, NotClubManager
from bookclub.services.rate_limiter import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    prefix="/clubs",
    tags=["Clubs"],
    responses={
        404: {"description": "Club not found"},
    },
)


# =============================================================================
# Helper Functions
# =============================================================================


def apply_club_filters(stmt: Select, filters: ClubSearchParams) -> Select:
    """
    Apply search filters to a club query.

    Text filters are case-insensitive partial matches.
    """
    if filters.q:
        pattern = f"%{filters.q}%"
        stmt = stmt.where(
            or_(Club.name.ilike(pattern), Club.description.ilike(pattern))
        )

    if filters.location:
        stmt = stmt.where(Club.location.ilike(f"%{filters.location}%"))

    if filters.genre:
        stmt = stmt.where(Club.genre.ilike(f"%{filters.genre}%"))

    if filters.min_members is not None:
        stmt = stmt.where(Club.members_count >= filters.min_members)

    if filters.max_members is not None:
        stmt = stmt.where(Club.members_count <= filters.max_members)

    return stmt


# =============================================================================
# Endpoints
# =============================================================================


@router.get(
    "/",
    response_model=ClubListResponse,
    summary="List clubs",
    description="Get a paginated list of clubs. Supports location, genre, size and text filters.",
)
@limiter.limit(settings.rate_limit_default)
def list_clubs(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    filters: ClubFilters,
) -> ClubListResponse:
    base_stmt = select(Club).where(Club.deleted_at.is_(None))

    if filters.has_filters:
        base_stmt = apply_club_filters(base_stmt, filters)

    count_stmt = select(func.count()).select_from(base_stmt.subquery())
    total = db.execute(count_stmt).scalar() or 0

    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    stmt = (
        base_stmt
        .order_by(Club.created_at.desc(), Club.id.desc())
        .offset(pagination.skip)
        .limit(pagination.per_page)
    )
    clubs = db.execute(stmt).scalars().all()

    return ClubListResponse(
        items=[ClubResponse.model_validate(c) for c in clubs],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )


@router.get(
    "/{club_id}",
    response_model=ClubResponse,
    summary="Get club by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_club(
    request: Request,
    club_id: int,
    db: DbSession,
) -> ClubResponse:
    return ClubResponse.model_validate(get_club_or_404(db, club_id))


@router.post(
    "/",
    response_model=ClubResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a club",
    description="Create a new club. The caller becomes its owner and first member.",
    responses={409: {"description": "Club name already taken"}},
)
@limiter.limit(settings.rate_limit_write)
def create_club(
    request: Request,
    club_data: ClubCreate,
    db: DbSession,
    current_user: ActiveUser,
) -> ClubResponse:
    club = membership.create_club(db, current_user.id, **club_data.model_dump())
    return ClubResponse.model_validate(club)


@router.put(
    "/{club_id}",
    response_model=ClubResponse,
    summary="Update a club",
    description="Update club details. Only the owner can update a club.",
    responses={403: {"description": "Not the club owner"}},
)
@limiter.limit(settings.rate_limit_write)
def update_club(
    request: Request,
    club_id: int,
    club_data: ClubUpdate,
    db: DbSession,
    current_user: ActiveUser,
) -> ClubResponse:
    club = get_club_or_404(db, club_id)

    if not membership.can_manage_club(db, club_id, current_user.id):
        raise NotClubManager()

    update_data = club_data.model_dump(exclude_unset=True)
    # Columns that cannot be cleared
    for field in ("name", "is_private", "max_members", "tags"):
        if field in update_data and update_data[field] is None:
            del update_data[field]

    new_name = update_data.get("name")
    if new_name and new_name != club.name:
        taken = db.execute(
            select(Club.id).where(Club.name == new_name, Club.id != club_id)
        ).first()
        if taken:
            raise ClubNameTaken()

    for field, value in update_data.items():
        setattr(club, field, value)

    db.commit()
    db.refresh(club)

    logger.info(f"Club updated: id={club_id} fields={sorted(update_data)}")

    return ClubResponse.model_validate(club)


@router.delete(
    "/{club_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close a club",
    description="Close (soft-delete) a club and remove all its memberships. Owner only.",
    responses={403: {"description": "Not the club owner"}},
)
@limiter.limit(settings.rate_limit_write)
def delete_club(
    request: Request,
    club_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> None:
    get_club_or_404(db, club_id)
    membership.close_club(db, club_id, current_user.id)
