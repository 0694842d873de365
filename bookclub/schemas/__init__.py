"""
Request and response models.

Naming: XxxCreate for POST bodies, XxxUpdate for partial PUT bodies (every
field optional), XxxResponse for output, XxxListResponse for paginated
output (items/total/page/per_page/pages).
"""

from bookclub.schemas.club import (
    ClubCreate,
    ClubListResponse,
    ClubRatingCreate,
    ClubRatingListResponse,
    ClubRatingResponse,
    ClubResponse,
    ClubUpdate,
    LeaveResponse,
    MembershipResponse,
    MembershipUpdate,
)
from bookclub.schemas.event import (
    EventCreate,
    EventListResponse,
    EventResponse,
    EventUpdate,
    RSVPCreate,
    RSVPResponse,
)
from bookclub.schemas.user import (
    PasswordChange,
    RefreshTokenRequest,
    TokenResponse,
    UserCreate,
    UserPublicResponse,
    UserResponse,
    UserUpdate,
)

__all__ = [
    # Club schemas
    "ClubCreate",
    "ClubUpdate",
    "ClubResponse",
    "ClubListResponse",
    "MembershipResponse",
    "MembershipUpdate",
    "LeaveResponse",
    "ClubRatingCreate",
    "ClubRatingResponse",
    "ClubRatingListResponse",
    # Event schemas
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "EventListResponse",
    "RSVPCreate",
    "RSVPResponse",
    # User schemas
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserPublicResponse",
    "PasswordChange",
    "TokenResponse",
    "RefreshTokenRequest",
]
