"""
Ratings Service

Service for managing club rating aggregations.

This service maintains denormalized rating fields on the Club model:
- rating: The mean of all club ratings (2 decimal places)
- ratings_count: Total number of ratings

These fields are updated whenever a rating is created or changed, so club
listings can sort and display ratings without an AVG/COUNT per row.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bookclub.models import Club, ClubRating

logger = logging.getLogger(__name__)


def rate_club(
    db: Session,
    club_id: int,
    user_id: int,
    rating: int,
    comment: str | None = None,
) -> ClubRating:
    """
    Create or update a user's rating of a club.

    A user has at most one rating per club; rating again overwrites it.
    Aggregates on the club are recalculated in the same commit.
    """
    stmt = select(ClubRating).where(
        ClubRating.club_id == club_id,
        ClubRating.user_id == user_id,
    )
    club_rating = db.execute(stmt).scalar_one_or_none()

    if club_rating is None:
        club_rating = ClubRating(club_id=club_id, user_id=user_id)
        db.add(club_rating)

    club_rating.rating = rating
    club_rating.comment = comment

    db.flush()
    recalculate_club_rating(db, club_id)
    db.refresh(club_rating)

    logger.info(f"User {user_id} rated club {club_id}: {rating}")
    return club_rating


def recalculate_club_rating(db: Session, club_id: int) -> None:
    """
    Recalculate and update a club's rating aggregations.

    Args:
        db: Database session
        club_id: ID of the club to update

    Note:
        This function commits the changes to the database.
    """
    stmt = select(
        func.avg(ClubRating.rating),
        func.count(ClubRating.id),
    ).where(ClubRating.club_id == club_id)

    avg_rating, ratings_count = db.execute(stmt).one()

    club = db.get(Club, club_id)
    if club:
        club.rating = round(float(avg_rating), 2) if avg_rating is not None else 0.0
        club.ratings_count = ratings_count
        db.commit()
