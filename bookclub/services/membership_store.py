"""
Membership Store

Persistence and point lookups for ClubMembership rows and the Club fields
the membership service owns (owner_id, members_count, deleted_at).

None of these functions commit. They run inside the caller's transaction
so that a multi-step change (e.g. "set new owner, drop old owner's row,
recount") is committed or rolled back as a whole.
"""

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookclub.models import Club, ClubMembership
from bookclub.services.errors import ConstraintViolation, NotAMember

logger = logging.getLogger(__name__)


# =============================================================================
# Club rows
# =============================================================================

def get_club(db: Session, club_id: int) -> Club | None:
    """Return a live (not soft-deleted) club without locking it."""
    stmt = select(Club).where(Club.id == club_id, Club.deleted_at.is_(None))
    return db.execute(stmt).scalar_one_or_none()


def lock_club(db: Session, club_id: int) -> Club | None:
    """
    Load a live club with SELECT ... FOR UPDATE.

    Concurrent leave/transfer/join requests on the same club queue up
    behind this lock until the holder commits or rolls back. Attributes
    are refreshed even if the club is already in the session.
    """
    stmt = (
        select(Club)
        .where(Club.id == club_id, Club.deleted_at.is_(None))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return db.execute(stmt).scalar_one_or_none()


def set_owner(db: Session, club: Club, user_id: int | None) -> None:
    club.owner_id = user_id
    db.flush()


def delete_club(db: Session, club: Club) -> None:
    """Soft-delete a club and remove every membership row it has."""
    club.deleted_at = datetime.now(UTC)
    db.execute(delete(ClubMembership).where(ClubMembership.club_id == club.id))
    club.members_count = 0
    db.flush()


def recount_members(db: Session, club: Club) -> int:
    """Recompute members_count from the membership rows."""
    db.flush()
    count = db.execute(
        select(func.count(ClubMembership.id)).where(ClubMembership.club_id == club.id)
    ).scalar_one()
    club.members_count = count
    db.flush()
    return count


# =============================================================================
# Membership rows
# =============================================================================

def get_membership(db: Session, club_id: int, user_id: int) -> ClubMembership | None:
    stmt = select(ClubMembership).where(
        ClubMembership.club_id == club_id,
        ClubMembership.user_id == user_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def list_members(db: Session, club_id: int) -> list[ClubMembership]:
    """Membership rows of a club, oldest first."""
    stmt = (
        select(ClubMembership)
        .where(ClubMembership.club_id == club_id)
        .order_by(ClubMembership.joined_at, ClubMembership.id)
    )
    return list(db.execute(stmt).scalars().all())


def list_user_clubs(db: Session, user_id: int) -> list[Club]:
    """Live clubs the user has a membership row in, in join order."""
    stmt = (
        select(Club)
        .join(ClubMembership, ClubMembership.club_id == Club.id)
        .where(ClubMembership.user_id == user_id, Club.deleted_at.is_(None))
        .order_by(ClubMembership.joined_at, Club.id)
    )
    return list(db.execute(stmt).scalars().all())


def upsert_membership(db: Session, membership: ClubMembership) -> ClubMembership:
    """
    Insert a new membership row or flush changes to an existing one.

    Raises:
        ConstraintViolation: the (club_id, user_id) pair already exists
    """
    if membership.id is None:
        db.add(membership)
    try:
        db.flush()
    except IntegrityError as e:
        logger.error(
            f"Membership constraint violated for club={membership.club_id} "
            f"user={membership.user_id}: {e.orig}"
        )
        raise ConstraintViolation() from e
    return membership


def delete_membership(db: Session, club_id: int, user_id: int) -> None:
    """
    Delete one membership row.

    Raises:
        NotAMember: there was no row to delete
    """
    result = db.execute(
        delete(ClubMembership).where(
            ClubMembership.club_id == club_id,
            ClubMembership.user_id == user_id,
        )
    )
    if result.rowcount == 0:
        raise NotAMember()
