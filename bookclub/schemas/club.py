"""
Club Pydantic Schemas

Schemas for clubs, memberships, the leave response and club ratings.

Schemas:
- ClubCreate / ClubUpdate / ClubResponse / ClubListResponse
- MembershipResponse / MembershipUpdate
- LeaveResponse
- ClubRatingCreate / ClubRatingResponse / ClubRatingListResponse

Business Rules:
- owner_id, members_count, rating and next_meeting are read-only here;
  only the services change them
- max_members is 1-1000
- Club names are stripped before the length check, on create and on update
"""
# ruff: noqa: I001
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bookclub.models.club import MemberRole
from bookclub.schemas.user import UserPublicResponse


def _clean_name(name: str) -> str:
    name = name.strip()
    if len(name) < 3:
        raise ValueError("Club name must be at least 3 characters")
    return name


def _normalize_tags(tags: list[str]) -> list[str]:
    """Strip, lowercase and de-duplicate tags, keeping their order."""
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


# =============================================================================
# Club Schemas
# =============================================================================


class ClubBase(BaseModel):
    """Fields shared by create and response schemas."""

    name: str = Field(
        ...,
        min_length=3,
        max_length=100,
        description="Unique club name",
        examples=["Sci-Fi Saturdays"],
    )
    description: str | None = Field(default=None, max_length=5000)
    location: str | None = Field(default=None, max_length=255, examples=["Lisbon"])
    genre: str | None = Field(default=None, max_length=100, examples=["Science Fiction"])
    cover_image_url: str | None = Field(default=None, max_length=500)
    is_private: bool = Field(
        default=False,
        description="Private clubs require the owner to approve join requests",
    )
    max_members: int = Field(default=100, ge=1, le=1000)
    tags: list[str] = Field(default_factory=list, max_length=20)
    current_book: dict[str, Any] | None = Field(
        default=None,
        description="Free-form description of the book being read",
        examples=[{"title": "Dune", "author": "Frank Herbert"}],
    )

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        return _normalize_tags(v)


class ClubCreate(ClubBase):
    """Schema for creating a club. The caller becomes its owner."""

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        return _clean_name(v)


class ClubUpdate(BaseModel):
    """
    Schema for updating a club (owner only).

    All fields are optional for partial updates.
    """

    name: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=5000)
    location: str | None = Field(default=None, max_length=255)
    genre: str | None = Field(default=None, max_length=100)
    cover_image_url: str | None = Field(default=None, max_length=500)
    is_private: bool | None = None
    max_members: int | None = Field(default=None, ge=1, le=1000)
    tags: list[str] | None = Field(default=None, max_length=20)
    current_book: dict[str, Any] | None = None

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _clean_name(v)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return _normalize_tags(v)


class ClubResponse(ClubBase):
    """Schema for club responses."""

    id: int
    owner_id: int | None = Field(default=None, description="Current owner")
    members_count: int = Field(..., ge=0)
    rating: float = Field(..., ge=0, le=5)
    ratings_count: int = Field(..., ge=0)
    next_meeting: dict[str, Any] | None = Field(
        default=None,
        description="Earliest upcoming event (date, location, topic)",
    )
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClubListResponse(BaseModel):
    """
    Schema for paginated club list responses.

    Includes pagination metadata:
    - total: Total number of clubs matching the filters
    - page: Current page number
    - per_page: Number of items per page
    - pages: Total number of pages
    """

    items: list[ClubResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    pages: int = Field(..., ge=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "items": [],
                "total": 12,
                "page": 1,
                "per_page": 10,
                "pages": 2,
            }
        },
    )


# =============================================================================
# Membership Schemas
# =============================================================================


class MembershipResponse(BaseModel):
    """A membership row with the member's public profile embedded."""

    id: int
    club_id: int
    user_id: int
    role: str = Field(..., description="member, moderator or admin")
    is_approved: bool
    joined_at: datetime
    user: UserPublicResponse | None = None

    model_config = ConfigDict(from_attributes=True)


class MembershipUpdate(BaseModel):
    """Owner-side change of a member's role or approval."""

    role: MemberRole | None = None
    is_approved: bool | None = None


class LeaveResponse(BaseModel):
    message: str
    outcome: str = Field(..., description="left, transferred or closed")


# =============================================================================
# Club Rating Schemas
# =============================================================================


class ClubRatingCreate(BaseModel):
    """Rate a club; rating again replaces the previous rating."""

    rating: int = Field(..., ge=1, le=5, description="Rating from 1 to 5 stars")
    comment: str | None = Field(default=None, max_length=2000)


class ClubRatingResponse(BaseModel):
    id: int
    club_id: int
    user_id: int
    rating: int
    comment: str | None = None
    created_at: datetime
    updated_at: datetime
    user: UserPublicResponse | None = None

    model_config = ConfigDict(from_attributes=True)


class ClubRatingListResponse(BaseModel):
    items: list[ClubRatingResponse]
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1, le=100)
    pages: int = Field(..., ge=0)
