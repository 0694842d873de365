"""
Events Router

Club meetings and RSVPs.

Endpoints:
- POST /clubs/{club_id}/events - Schedule an event (club owner)
- GET /clubs/{club_id}/events - List a club's events
- GET /events/public - Upcoming public events of all clubs
- GET /events/{event_id} - Get an event
- PUT /events/{event_id} - Update an event (club owner)
- DELETE /events/{event_id} - Delete an event (club owner)
- POST /events/{event_id}/rsvp - Answer going / maybe / not_going
- GET /events/{event_id}/attendees - List RSVPs

Business Rules:
- Only approved members can RSVP or see the attendee list
- "going" answers are capped by max_attendees
- Every schedule change refreshes the club's next_meeting summary
"""

import math

from fastapi import APIRouter, HTTPException, Request, status

from bookclub.config import get_settings
from bookclub.dependencies import ActiveUser, DbSession, Pagination, get_club_or_404, get_event_or_404
from bookclub.schemas.event import (
    EventCreate,
    EventListResponse,
    EventResponse,
    EventUpdate,
    RSVPCreate,
    RSVPResponse,
)
from bookclub.services import events as event_service
from bookclub.services import membership
from bookclub.services.errors import NotClubManager
from bookclub.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(
    tags=["Events"],
    responses={
        404: {"description": "Club or event not found"},
    },
)


def _require_approved_member(db, club_id: int, user_id: int) -> None:
    if not membership.is_approved_member(db, club_id, user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only approved members can do this",
        )


# =============================================================================
# Club Events
# =============================================================================


@router.post(
    "/clubs/{club_id}/events",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule a club event",
    responses={403: {"description": "Not the club owner"}},
)
@limiter.limit(settings.rate_limit_write)
def create_event(
    request: Request,
    club_id: int,
    event_data: EventCreate,
    db: DbSession,
    current_user: ActiveUser,
) -> EventResponse:
    get_club_or_404(db, club_id)

    if not membership.can_manage_club(db, club_id, current_user.id):
        raise NotClubManager()

    event = event_service.create_event(db, club_id, **event_data.model_dump(mode="python"))
    return EventResponse.model_validate(event)


@router.get(
    "/clubs/{club_id}/events",
    response_model=EventListResponse,
    summary="List club events",
)
@limiter.limit(settings.rate_limit_default)
def list_club_events(
    request: Request,
    club_id: int,
    db: DbSession,
    pagination: Pagination,
) -> EventListResponse:
    get_club_or_404(db, club_id)

    items, total = event_service.list_club_events(db, club_id, pagination.skip, pagination.per_page)
    return EventListResponse(
        items=[EventResponse.model_validate(e) for e in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=math.ceil(total / pagination.per_page) if total > 0 else 0,
    )


# =============================================================================
# Events
# =============================================================================


@router.get(
    "/events/public",
    response_model=EventListResponse,
    summary="List upcoming public events",
)
@limiter.limit(settings.rate_limit_default)
def list_public_events(
    request: Request,
    db: DbSession,
    pagination: Pagination,
) -> EventListResponse:
    items, total = event_service.list_public_events(db, pagination.skip, pagination.per_page)
    return EventListResponse(
        items=[EventResponse.model_validate(e) for e in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=math.ceil(total / pagination.per_page) if total > 0 else 0,
    )


@router.get(
    "/events/{event_id}",
    response_model=EventResponse,
    summary="Get event by ID",
)
@limiter.limit(settings.rate_limit_default)
def get_event(
    request: Request,
    event_id: int,
    db: DbSession,
) -> EventResponse:
    return EventResponse.model_validate(get_event_or_404(db, event_id))


@router.put(
    "/events/{event_id}",
    response_model=EventResponse,
    summary="Update an event",
    responses={403: {"description": "Not the club owner"}},
)
@limiter.limit(settings.rate_limit_write)
def update_event(
    request: Request,
    event_id: int,
    event_data: EventUpdate,
    db: DbSession,
    current_user: ActiveUser,
) -> EventResponse:
    event = get_event_or_404(db, event_id)

    if not membership.can_manage_club(db, event.club_id, current_user.id):
        raise NotClubManager()

    changes = event_data.model_dump(exclude_unset=True)
    for field in ("title", "event_type", "start_time", "end_time", "is_public"):
        if field in changes and changes[field] is None:
            del changes[field]

    start = changes.get("start_time") or event_service.as_utc(event.start_time)
    end = changes.get("end_time") or event_service.as_utc(event.end_time)
    if end <= start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_time must be after start_time",
        )

    event = event_service.update_event(db, event, changes)
    return EventResponse.model_validate(event)


@router.delete(
    "/events/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an event",
    responses={403: {"description": "Not the club owner"}},
)
@limiter.limit(settings.rate_limit_write)
def delete_event(
    request: Request,
    event_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> None:
    event = get_event_or_404(db, event_id)

    if not membership.can_manage_club(db, event.club_id, current_user.id):
        raise NotClubManager()

    event_service.delete_event(db, event)


# =============================================================================
# RSVPs
# =============================================================================


@router.post(
    "/events/{event_id}/rsvp",
    response_model=RSVPResponse,
    summary="RSVP to an event",
    responses={
        400: {"description": "Event is full"},
        403: {"description": "Not an approved member"},
    },
)
@limiter.limit(settings.rate_limit_write)
def rsvp_event(
    request: Request,
    event_id: int,
    rsvp_data: RSVPCreate,
    db: DbSession,
    current_user: ActiveUser,
) -> RSVPResponse:
    event = get_event_or_404(db, event_id)
    _require_approved_member(db, event.club_id, current_user.id)

    try:
        answer = event_service.rsvp(db, event, current_user.id, rsvp_data.status.value)
    except event_service.EventFull:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event is full",
        ) from None

    return RSVPResponse.model_validate(answer)


@router.get(
    "/events/{event_id}/attendees",
    response_model=list[RSVPResponse],
    summary="List event RSVPs",
    responses={403: {"description": "Not an approved member"}},
)
@limiter.limit(settings.rate_limit_default)
def list_attendees(
    request: Request,
    event_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> list[RSVPResponse]:
    event = get_event_or_404(db, event_id)
    _require_approved_member(db, event.club_id, current_user.id)

    return [RSVPResponse.model_validate(r) for r in event_service.list_attendees(db, event_id)]
