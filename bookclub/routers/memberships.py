"""
Memberships Router

Joining, leaving and member administration.

Endpoints:
- POST /clubs/{club_id}/join - Join a club (pending for private clubs)
- POST /clubs/{club_id}/leave - Leave a club; owners must transfer or close
- GET /clubs/{club_id}/members - List a club's members
- GET /clubs/{club_id}/members/{user_id} - Get one member
- PUT /clubs/{club_id}/members/{user_id} - Change role/approval (owner only)

Leave request body (owners only; ignored for everyone else):
    {"action": "transfer", "new_owner_id": 42}
    {"action": "close"}

Every rejected request carries a stable error code, e.g.:
    400 {"detail": "...", "code": "owner_disposition_required"}
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Request, status

from bookclub.config import get_settings
from bookclub.dependencies import ActiveUser, DbSession, get_club_or_404
from bookclub.schemas.club import (
    LeaveResponse,
    MembershipResponse,
    MembershipUpdate,
)
from bookclub.services import membership
from bookclub.services.membership import LeaveOutcome
from bookclub.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    prefix="/clubs",
    tags=["Memberships"],
    responses={
        400: {"description": "Membership rule violated (see error code)"},
        401: {"description": "Not authenticated"},
    },
)

LEAVE_MESSAGES = {
    LeaveOutcome.LEFT: "Left club successfully",
    LeaveOutcome.TRANSFERRED: "Ownership transferred and left club successfully",
    LeaveOutcome.CLOSED: "Club closed successfully",
}

LEAVE_EXAMPLES = {
    "transfer": {"summary": "Hand the club over", "value": {"action": "transfer", "new_owner_id": 42}},
    "close": {"summary": "Close the club", "value": {"action": "close"}},
}


@router.post(
    "/{club_id}/join",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Join a club",
    description="Public clubs approve new members at once; private clubs record a pending request.",
)
@limiter.limit(settings.rate_limit_write)
def join_club(
    request: Request,
    club_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> MembershipResponse:
    member = membership.join_club(db, club_id, current_user.id)
    return MembershipResponse.model_validate(member)


@router.post(
    "/{club_id}/leave",
    response_model=LeaveResponse,
    summary="Leave a club",
    description="""
    Leave a club.

    Regular members simply leave. The owner must say what happens to the club:
    - `{"action": "transfer", "new_owner_id": <id>}` hands the club to an
      approved member
    - `{"action": "close"}` closes the club for everyone
    """,
)
@limiter.limit(settings.rate_limit_write)
def leave_club(
    request: Request,
    club_id: int,
    db: DbSession,
    current_user: ActiveUser,
    body: Annotated[Any, Body(openapi_examples=LEAVE_EXAMPLES)] = None,
) -> LeaveResponse:
    # Raw JSON; the service validates it only when the caller owns the club
    disposition = body if isinstance(body, dict) else {}
    outcome = membership.leave_club(
        db,
        club_id,
        current_user.id,
        action=disposition.get("action"),
        new_owner_id=disposition.get("new_owner_id"),
    )
    return LeaveResponse(message=LEAVE_MESSAGES[outcome], outcome=outcome.value)


@router.get(
    "/{club_id}/members",
    response_model=list[MembershipResponse],
    summary="List club members",
    description="All membership rows of a club, approved and pending, oldest first.",
)
@limiter.limit(settings.rate_limit_default)
def list_members(
    request: Request,
    club_id: int,
    db: DbSession,
) -> list[MembershipResponse]:
    get_club_or_404(db, club_id)
    members = membership.list_club_members(db, club_id)
    return [MembershipResponse.model_validate(m) for m in members]


@router.get(
    "/{club_id}/members/{user_id}",
    response_model=MembershipResponse,
    summary="Get a club member",
    responses={404: {"description": "Member not found"}},
)
@limiter.limit(settings.rate_limit_default)
def get_member(
    request: Request,
    club_id: int,
    user_id: int,
    db: DbSession,
) -> MembershipResponse:
    get_club_or_404(db, club_id)
    member = membership.get_club_member_by_user_id(db, club_id, user_id)
    return MembershipResponse.model_validate(member)


@router.put(
    "/{club_id}/members/{user_id}",
    response_model=MembershipResponse,
    summary="Update a club member",
    description="Approve a pending member or change a member's role. Owner only.",
    responses={
        403: {"description": "Not the club owner"},
        404: {"description": "Member not found"},
    },
)
@limiter.limit(settings.rate_limit_write)
def update_member(
    request: Request,
    club_id: int,
    user_id: int,
    member_data: MembershipUpdate,
    db: DbSession,
    current_user: ActiveUser,
) -> MembershipResponse:
    member = membership.update_member(
        db,
        club_id,
        current_user.id,
        user_id,
        role=member_data.role.value if member_data.role else None,
        is_approved=member_data.is_approved,
    )
    return MembershipResponse.model_validate(member)
