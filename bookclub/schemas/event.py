"""
Event Pydantic Schemas

Schemas for club events and RSVPs.

Times are always stored and returned in UTC. Naive datetimes sent by a
client are taken to be UTC already.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bookclub.models.event import EventType, RSVPStatus
from bookclub.schemas.user import UserPublicResponse


def _as_utc(v: datetime | None) -> datetime | None:
    if v is None:
        return v
    if v.tzinfo is None:
        return v.replace(tzinfo=UTC)
    return v.astimezone(UTC)


class EventCreate(BaseModel):
    """Schema for scheduling a club event (club owner only)."""

    title: str = Field(..., min_length=1, max_length=200, examples=["Dune, part one"])
    description: str | None = Field(default=None, max_length=5000)
    event_type: EventType = Field(default=EventType.IN_PERSON)
    start_time: datetime = Field(..., examples=["2030-05-01T18:00:00Z"])
    end_time: datetime = Field(..., examples=["2030-05-01T20:00:00Z"])
    location: str | None = Field(default=None, max_length=255)
    online_link: str | None = Field(default=None, max_length=500)
    max_attendees: int | None = Field(default=None, ge=1)
    is_public: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    @model_validator(mode="after")
    def check_times(self) -> "EventCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class EventUpdate(BaseModel):
    """
    Partial event update.

    The end_time > start_time rule is checked again after merging with
    the stored event.
    """

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    event_type: EventType | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    location: str | None = Field(default=None, max_length=255)
    online_link: str | None = Field(default=None, max_length=500)
    max_attendees: int | None = Field(default=None, ge=1)
    is_public: bool | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def to_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


class EventResponse(BaseModel):
    id: int
    club_id: int
    title: str
    description: str | None = None
    event_type: str
    start_time: datetime
    end_time: datetime
    location: str | None = None
    online_link: str | None = None
    max_attendees: int | None = None
    is_public: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventListResponse(BaseModel):
    items: list[EventResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    pages: int = Field(..., ge=0)


class RSVPCreate(BaseModel):
    status: RSVPStatus = Field(..., examples=["going"])


class RSVPResponse(BaseModel):
    id: int
    event_id: int
    user_id: int
    status: str
    created_at: datetime
    updated_at: datetime
    user: UserPublicResponse | None = None

    model_config = ConfigDict(from_attributes=True)
