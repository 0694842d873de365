"""
Event and RSVP Models

Club meetings (in person or online) and members' answers to them.

Business Rules:
- end_time must be after start_time
- One RSVP per user per event (answering again updates the status)
- "going" answers are capped by max_attendees when it is set
"""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookclub.database import Base


class EventType(str, Enum):
    """Where an event takes place."""
    IN_PERSON = "in_person"
    ONLINE = "online"


class RSVPStatus(str, Enum):
    """Answers a member can give to an event invitation."""
    GOING = "going"
    MAYBE = "maybe"
    NOT_GOING = "not_going"


class Event(Base):
    """
    Club event.

    Table: events
    """

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    club_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("clubs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    event_type: Mapped[str] = mapped_column(
        String(20),
        default=EventType.IN_PERSON.value,
        nullable=False,
    )

    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    end_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    online_link: Mapped[str | None] = mapped_column(Text, nullable=True)

    max_attendees: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Cap on 'going' RSVPs (null = unlimited)",
    )
    is_public: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Public events are listed to non-members",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    club = relationship("Club")
    rsvps: Mapped[list["EventRSVP"]] = relationship(
        "EventRSVP",
        back_populates="event",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_event_time_order"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, club_id={self.club_id}, title='{self.title}')>"


class EventRSVP(Base):
    """
    A user's answer to an event.

    Table: event_rsvps
    """

    __tablename__ = "event_rsvps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    event_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status: Mapped[str] = mapped_column(String(20), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    event = relationship("Event", back_populates="rsvps")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_rsvp_event_user"),
    )

    def __repr__(self) -> str:
        return f"<EventRSVP(event_id={self.event_id}, user_id={self.user_id}, status={self.status})>"
