"""
Club Events Service

Scheduling helpers for club events and RSVPs.

Features:
- Create/update/delete events, keeping Club.next_meeting in sync
- RSVP upsert with an attendance cap on "going" answers
- Public upcoming events across all live clubs

Club.next_meeting holds a small JSON summary of the earliest event that
has not started yet:

    {"event_id": 7, "date": "2030-05-01T18:00:00+00:00",
     "location": "Central Library", "topic": "Dune, part one"}

For online events the location is the meeting link.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bookclub.models import Club, Event, EventRSVP, EventType, RSVPStatus

logger = logging.getLogger(__name__)


class EventFull(Exception):
    """Raised when a "going" RSVP would exceed the event's max_attendees."""


# =============================================================================
# Next Meeting
# =============================================================================

def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from databases without tz support."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _normalize(fields: dict[str, Any]) -> dict[str, Any]:
    if fields.get("event_type") is not None:
        fields["event_type"] = EventType(fields["event_type"]).value
    return fields


def _meeting_summary(event: Event) -> dict[str, Any]:
    if event.event_type == EventType.ONLINE.value:
        location = event.online_link
    else:
        location = event.location

    return {
        "event_id": event.id,
        "date": as_utc(event.start_time).isoformat(),
        "location": location,
        "topic": event.title,
    }


def refresh_next_meeting(db: Session, club_id: int) -> dict[str, Any] | None:
    """
    Point Club.next_meeting at the club's earliest upcoming event.

    Does not commit; callers include it in their own transaction.

    Returns:
        The new next_meeting payload, or None if nothing is scheduled
    """
    db.flush()
    stmt = (
        select(Event)
        .where(Event.club_id == club_id, Event.start_time >= datetime.now(UTC))
        .order_by(Event.start_time, Event.id)
        .limit(1)
    )
    upcoming = db.execute(stmt).scalar_one_or_none()

    club = db.get(Club, club_id)
    if club is None:
        return None

    club.next_meeting = _meeting_summary(upcoming) if upcoming else None
    return club.next_meeting


# =============================================================================
# Event CRUD
# =============================================================================

def create_event(db: Session, club_id: int, **fields) -> Event:
    event = Event(club_id=club_id, **_normalize(fields))
    db.add(event)
    db.flush()
    refresh_next_meeting(db, club_id)
    db.commit()
    db.refresh(event)

    logger.info(f"Event created: id={event.id} club={club_id} title='{event.title}'")
    return event


def update_event(db: Session, event: Event, changes: dict[str, Any]) -> Event:
    """Apply a partial update and refresh the club's next meeting."""
    for field, value in _normalize(changes).items():
        setattr(event, field, value)

    db.flush()
    refresh_next_meeting(db, event.club_id)
    db.commit()
    db.refresh(event)

    logger.info(f"Event updated: id={event.id} fields={sorted(changes)}")
    return event


def delete_event(db: Session, event: Event) -> None:
    club_id = event.club_id
    event_id = event.id
    db.delete(event)
    db.flush()
    refresh_next_meeting(db, club_id)
    db.commit()

    logger.info(f"Event deleted: id={event_id} club={club_id}")


# =============================================================================
# RSVPs
# =============================================================================

def count_going(db: Session, event_id: int) -> int:
    stmt = select(func.count(EventRSVP.id)).where(
        EventRSVP.event_id == event_id,
        EventRSVP.status == RSVPStatus.GOING.value,
    )
    return db.execute(stmt).scalar_one()


def rsvp(db: Session, event: Event, user_id: int, status: str) -> EventRSVP:
    """
    Record (or change) a user's answer to an event.

    Raises:
        EventFull: status is "going" and the event already has
            max_attendees "going" answers from other users
    """
    stmt = select(EventRSVP).where(
        EventRSVP.event_id == event.id,
        EventRSVP.user_id == user_id,
    )
    answer = db.execute(stmt).scalar_one_or_none()

    becomes_going = status == RSVPStatus.GOING.value and (
        answer is None or answer.status != RSVPStatus.GOING.value
    )
    if becomes_going and event.max_attendees is not None:
        if count_going(db, event.id) >= event.max_attendees:
            raise EventFull(f"Event {event.id} is full")

    if answer is None:
        answer = EventRSVP(event_id=event.id, user_id=user_id, status=status)
        db.add(answer)
    else:
        answer.status = status

    db.commit()
    db.refresh(answer)

    logger.info(f"RSVP: event={event.id} user={user_id} status={status}")
    return answer


def list_attendees(db: Session, event_id: int) -> list[EventRSVP]:
    stmt = (
        select(EventRSVP)
        .where(EventRSVP.event_id == event_id)
        .order_by(EventRSVP.created_at, EventRSVP.id)
    )
    return list(db.execute(stmt).scalars().all())


# =============================================================================
# Listings
# =============================================================================

def list_club_events(db: Session, club_id: int, skip: int = 0, limit: int = 20) -> tuple[list[Event], int]:
    base = select(Event).where(Event.club_id == club_id)
    total = db.execute(select(func.count()).select_from(base.subquery())).scalar_one()
    events = db.execute(
        base.order_by(Event.start_time, Event.id).offset(skip).limit(limit)
    ).scalars().all()
    return list(events), total


def list_public_events(db: Session, skip: int = 0, limit: int = 20) -> tuple[list[Event], int]:
    """Upcoming public events of live clubs, soonest first."""
    base = (
        select(Event)
        .join(Club, Club.id == Event.club_id)
        .where(
            Event.is_public.is_(True),
            Event.start_time >= datetime.now(UTC),
            Club.deleted_at.is_(None),
        )
    )
    total = db.execute(select(func.count()).select_from(base.subquery())).scalar_one()
    events = db.execute(
        base.order_by(Event.start_time, Event.id).offset(skip).limit(limit)
    ).scalars().all()
    return list(events), total
