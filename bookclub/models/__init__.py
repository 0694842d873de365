"""
SQLAlchemy Models Package

This package contains all database models for the Book Club API.

Model Relationships:
- User <-> Club: Many-to-Many through ClubMembership (role, approval)
- Club -> User: Many-to-One owner (Club.owner_id, nullable)
- Club <- ClubRating: One-to-Many (one rating per user per club)
- Club <- Event <- EventRSVP: One-to-Many chains

Import all models here so Alembic discovers them and the rest of the
application can use a single import point.
"""

from bookclub.models.user import User
from bookclub.models.club import Club, ClubMembership, MemberRole
from bookclub.models.rating import ClubRating
from bookclub.models.event import Event, EventRSVP, EventType, RSVPStatus

__all__ = [
    "User",
    "Club",
    "ClubMembership",
    "MemberRole",
    "ClubRating",
    "Event",
    "EventRSVP",
    "EventType",
    "RSVPStatus",
]
