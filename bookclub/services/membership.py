"""
Membership Service

Every change to who belongs to a club, and who owns it, goes through this
module. It is the only writer of Club.owner_id and Club.members_count.

Leave Protocol:
===============
Given (club, acting user, optional disposition) the protocol applies one
transition inside a single transaction, holding a row lock on the club:

1. Club must exist (ClubNotFound) and the user must be a member (NotAMember)
2. Non-owner: the membership row is removed; any disposition is ignored
3. Owner: a disposition is mandatory (OwnerDispositionRequired)
   - transfer: new owner must be given, differ from the owner, be a member
     and be approved; then owner_id moves and the old owner's row is removed
   - close: the club is soft-deleted together with all its memberships
   - anything else: InvalidDisposition

Any failure rolls the whole transaction back, so an observer only ever
sees the state before or after a complete transition.

Usage:
    from bookclub.services import membership

    outcome = membership.leave_club(db, club_id, user.id, "transfer", 42)
"""

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookclub.models import Club, ClubMembership, MemberRole
from bookclub.services import membership_store as store
from bookclub.services.errors import (
    AlreadyMember,
    ClubFull,
    ClubNameTaken,
    ClubNotFound,
    InvalidDisposition,
    MemberNotFound,
    MembershipError,
    NewOwnerNotAMember,
    NewOwnerNotApproved,
    NewOwnerRequired,
    NotAMember,
    NotClubManager,
    OwnerDispositionRequired,
    SameOwner,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Leave Disposition
# =============================================================================

class LeaveOutcome(StrEnum):
    """What a successful leave request did."""
    LEFT = "left"
    TRANSFERRED = "transferred"
    CLOSED = "closed"


@dataclass(frozen=True)
class TransferOwnership:
    new_owner_id: int


@dataclass(frozen=True)
class CloseClub:
    pass


Disposition = TransferOwnership | CloseClub


def resolve_disposition(
    action: Any = None,
    new_owner_id: Any = None,
) -> Disposition | None:
    """
    Turn the raw ``{action, new_owner_id}`` pair into a disposition.

    Values come straight from the request JSON, so they may have any type.
    Returns None only when no action was supplied at all.

    Raises:
        NewOwnerRequired: action is "transfer" without a new_owner_id
        InvalidDisposition: action is not "transfer" or "close", or a
            new_owner_id was sent that is not an integer
    """
    if action is None:
        return None
    if new_owner_id is not None and type(new_owner_id) is not int:
        raise InvalidDisposition()
    if action == "transfer":
        if new_owner_id is None:
            raise NewOwnerRequired()
        return TransferOwnership(new_owner_id=new_owner_id)
    if action == "close":
        return CloseClub()
    raise InvalidDisposition()


# =============================================================================
# Leave Protocol
# =============================================================================

def leave_club(
    db: Session,
    club_id: int,
    user_id: int,
    action: Any = None,
    new_owner_id: Any = None,
) -> LeaveOutcome:
    """
    Remove a user from a club, handing over or closing it if they own it.

    Args:
        db: Database session (committed on success, rolled back on failure)
        club_id: Club to leave
        user_id: Authenticated acting user
        action: "transfer" or "close"; only consulted when the user is the owner,
            so a non-owner may send anything here
        new_owner_id: Target of a transfer, unvalidated until then

    Returns:
        LeaveOutcome describing the applied transition

    Raises:
        MembershipError subclasses for every rejected request
    """
    try:
        outcome = _apply_leave(db, club_id, user_id, action, new_owner_id)
        db.commit()
    except MembershipError as e:
        db.rollback()
        logger.info(f"Leave rejected: club={club_id} user={user_id} code={e.code}")
        raise
    except Exception:
        db.rollback()
        raise

    logger.info(f"Leave applied: club={club_id} user={user_id} outcome={outcome.value}")
    return outcome


def _apply_leave(
    db: Session,
    club_id: int,
    user_id: int,
    action: Any,
    new_owner_id: Any,
) -> LeaveOutcome:
    club = store.lock_club(db, club_id)
    if club is None:
        raise ClubNotFound()

    if store.get_membership(db, club_id, user_id) is None:
        raise NotAMember()

    if club.owner_id != user_id:
        store.delete_membership(db, club_id, user_id)
        remaining = store.recount_members(db, club)
        if remaining == 0:
            # Last member of an ownerless club
            store.delete_club(db, club)
            return LeaveOutcome.CLOSED
        return LeaveOutcome.LEFT

    disposition = resolve_disposition(action, new_owner_id)
    if disposition is None:
        raise OwnerDispositionRequired()

    if isinstance(disposition, CloseClub):
        store.delete_club(db, club)
        return LeaveOutcome.CLOSED

    _transfer_ownership(db, club, user_id, disposition.new_owner_id)
    return LeaveOutcome.TRANSFERRED


def _transfer_ownership(db: Session, club: Club, owner_id: int, new_owner_id: int) -> None:
    if new_owner_id == owner_id:
        raise SameOwner()

    target = store.get_membership(db, club.id, new_owner_id)
    if target is None:
        raise NewOwnerNotAMember()
    if not target.is_approved:
        raise NewOwnerNotApproved()

    store.set_owner(db, club, new_owner_id)
    store.delete_membership(db, club.id, owner_id)
    store.recount_members(db, club)


# =============================================================================
# Club Lifecycle
# =============================================================================

def create_club(db: Session, owner_id: int, **fields) -> Club:
    """
    Create a club owned by ``owner_id``.

    The owner gets an approved admin membership, so the club starts with
    members_count == 1.

    Raises:
        ClubNameTaken: another club (live or deleted) already uses the name
    """
    name = fields["name"]
    existing = db.execute(select(Club.id).where(Club.name == name)).first()
    if existing:
        raise ClubNameTaken()

    club = Club(owner_id=owner_id, members_count=0, **fields)
    try:
        db.add(club)
        db.flush()
        store.upsert_membership(
            db,
            ClubMembership(
                club_id=club.id,
                user_id=owner_id,
                role=MemberRole.ADMIN.value,
                is_approved=True,
            ),
        )
        store.recount_members(db, club)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ClubNameTaken() from e
    except Exception:
        db.rollback()
        raise

    db.refresh(club)
    logger.info(f"Club created: id={club.id} name='{club.name}' owner={owner_id}")
    return club


def close_club(db: Session, club_id: int, user_id: int) -> None:
    """
    Explicitly close a club (owner only).

    Raises:
        ClubNotFound: club does not exist or is already closed
        NotClubManager: user is not the owner
    """
    try:
        club = store.lock_club(db, club_id)
        if club is None:
            raise ClubNotFound()
        if club.owner_id != user_id:
            raise NotClubManager()
        store.delete_club(db, club)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Club closed: id={club_id} by user={user_id}")


# =============================================================================
# Joining and Member Administration
# =============================================================================

def join_club(db: Session, club_id: int, user_id: int) -> ClubMembership:
    """
    Add a user to a club.

    Public clubs approve the membership immediately; private clubs record
    a pending request that the owner approves later.

    Raises:
        ClubNotFound, AlreadyMember, ClubFull
    """
    try:
        club = store.lock_club(db, club_id)
        if club is None:
            raise ClubNotFound()
        if store.get_membership(db, club_id, user_id) is not None:
            raise AlreadyMember()
        if club.members_count >= club.max_members:
            raise ClubFull()

        membership = store.upsert_membership(
            db,
            ClubMembership(
                club_id=club_id,
                user_id=user_id,
                role=MemberRole.MEMBER.value,
                is_approved=not club.is_private,
            ),
        )
        store.recount_members(db, club)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(membership)
    logger.info(
        f"User {user_id} joined club {club_id} "
        f"({'approved' if membership.is_approved else 'pending'})"
    )
    return membership


def update_member(
    db: Session,
    club_id: int,
    acting_user_id: int,
    user_id: int,
    role: str | None = None,
    is_approved: bool | None = None,
) -> ClubMembership:
    """
    Change a member's role and/or approval (owner only).

    Raises:
        ClubNotFound, NotClubManager, MemberNotFound
        ClubFull: approving would exceed max_members approved members
    """
    try:
        club = store.lock_club(db, club_id)
        if club is None:
            raise ClubNotFound()
        if club.owner_id != acting_user_id:
            raise NotClubManager()

        membership = store.get_membership(db, club_id, user_id)
        if membership is None:
            raise MemberNotFound()

        if is_approved and not membership.is_approved:
            approved = db.execute(
                select(func.count(ClubMembership.id)).where(
                    ClubMembership.club_id == club_id,
                    ClubMembership.is_approved.is_(True),
                )
            ).scalar_one()
            if approved >= club.max_members:
                raise ClubFull()

        if role is not None:
            membership.role = role
        if is_approved is not None:
            membership.is_approved = is_approved

        store.upsert_membership(db, membership)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(membership)
    logger.info(
        f"Member updated: club={club_id} user={user_id} "
        f"role={membership.role} approved={membership.is_approved}"
    )
    return membership


# =============================================================================
# Query Surface
# =============================================================================

def list_club_members(db: Session, club_id: int) -> list[ClubMembership]:
    if store.get_club(db, club_id) is None:
        raise ClubNotFound()
    return store.list_members(db, club_id)


def get_club_member_by_user_id(db: Session, club_id: int, user_id: int) -> ClubMembership:
    if store.get_club(db, club_id) is None:
        raise ClubNotFound()
    membership = store.get_membership(db, club_id, user_id)
    if membership is None:
        raise MemberNotFound()
    return membership


def list_user_clubs(db: Session, user_id: int) -> list[Club]:
    return store.list_user_clubs(db, user_id)


def is_approved_member(db: Session, club_id: int, user_id: int) -> bool:
    membership = store.get_membership(db, club_id, user_id)
    return membership is not None and membership.is_approved


def can_manage_club(db: Session, club_id: int, user_id: int) -> bool:
    """True only for the club's owner; moderators get no management rights."""
    club = store.get_club(db, club_id)
    return club is not None and club.owner_id == user_id
