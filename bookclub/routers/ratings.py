"""
Club Ratings Router

Endpoints:
- POST /clubs/{club_id}/ratings - Rate a club (approved members only)
- GET /clubs/{club_id}/ratings - List a club's ratings

Business Rules:
- One rating per user per club; rating again replaces the old one
- Club.rating / Club.ratings_count are recalculated on every change
"""

import math

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from bookclub.config import get_settings
from bookclub.dependencies import ActiveUser, DbSession, Pagination, get_club_or_404
from bookclub.models.rating import ClubRating
from bookclub.schemas.club import ClubRatingCreate, ClubRatingListResponse, ClubRatingResponse
from bookclub.services import membership
from bookclub.services.rate_limiter import limiter
from bookclub.services.ratings import rate_club

settings = get_settings()

router = APIRouter(
    prefix="/clubs",
    tags=["Ratings"],
    responses={
        404: {"description": "Club not found"},
    },
)


@router.post(
    "/{club_id}/ratings",
    response_model=ClubRatingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Rate a club",
    description="Give a club 1-5 stars. Only approved members can rate.",
    responses={403: {"description": "Not an approved member"}},
)
@limiter.limit(settings.rate_limit_write)
def create_rating(
    request: Request,
    club_id: int,
    rating_data: ClubRatingCreate,
    db: DbSession,
    current_user: ActiveUser,
) -> ClubRatingResponse:
    get_club_or_404(db, club_id)

    if not membership.is_approved_member(db, club_id, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only approved members can rate this club",
        )

    club_rating = rate_club(
        db,
        club_id,
        current_user.id,
        rating_data.rating,
        rating_data.comment,
    )
    return ClubRatingResponse.model_validate(club_rating)


@router.get(
    "/{club_id}/ratings",
    response_model=ClubRatingListResponse,
    summary="List club ratings",
)
@limiter.limit(settings.rate_limit_default)
def list_ratings(
    request: Request,
    club_id: int,
    db: DbSession,
    pagination: Pagination,
) -> ClubRatingListResponse:
    get_club_or_404(db, club_id)

    count_stmt = select(func.count()).where(ClubRating.club_id == club_id)
    total = db.execute(count_stmt).scalar() or 0

    pages = math.ceil(total / pagination.per_page) if total > 0 else 0

    stmt = (
        select(ClubRating)
        .options(selectinload(ClubRating.user))
        .where(ClubRating.club_id == club_id)
        .order_by(ClubRating.updated_at.desc(), ClubRating.id.desc())
        .offset(pagination.skip)
        .limit(pagination.per_page)
    )
    ratings = db.execute(stmt).scalars().all()

    return ClubRatingListResponse(
        items=[ClubRatingResponse.model_validate(r) for r in ratings],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pages,
    )
