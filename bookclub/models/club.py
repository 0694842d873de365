"""
Club and ClubMembership Models

A club is a group users join; a membership is the join row linking a user
to a club with a role and an approval flag.

Business Rules:
- Club names are unique
- One membership row per user per club (unique constraint)
- Ownership is tracked solely by Club.owner_id; the membership role is
  not escalated when ownership changes hands
- members_count is denormalized and recomputed with COUNT(*) inside every
  transaction that adds or removes membership rows
- Clubs are soft-deleted (deleted_at); their memberships are removed
"""

from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookclub.database import Base

if TYPE_CHECKING:
    from bookclub.models.user import User


class MemberRole(str, Enum):
    """
    Roles a membership row can carry.

    - MEMBER: regular member
    - MODERATOR: trusted member (no extra protocol rights yet)
    - ADMIN: marker given to the club creator's membership
    """
    MEMBER = "member"
    MODERATOR = "moderator"
    ADMIN = "admin"


class Club(Base):
    """
    Club model.

    Table: clubs

    Relationships:
    - owner: Many-to-One with User (nullable, see owner_id)
    - members: One-to-Many with ClubMembership

    Example:
        club = Club(
            name="Sci-Fi Saturdays",
            description="Classic and modern science fiction",
            genre="Science Fiction",
            max_members=25,
        )
    """

    __tablename__ = "clubs"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique club name"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="What the club is about"
    )

    location: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        comment="City or venue where the club meets"
    )

    genre: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        index=True,
        comment="Main genre the club reads"
    )

    cover_image_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    is_private: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="Private clubs require approval of join requests"
    )

    max_members: Mapped[int] = mapped_column(
        Integer,
        default=100,
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Denormalized Aggregates
    # -------------------------------------------------------------------------
    # Maintained only by the membership and ratings services
    members_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Number of membership rows (recomputed on change)"
    )

    rating: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        nullable=False,
        comment="Average of all club ratings"
    )

    ratings_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Ownership
    # -------------------------------------------------------------------------
    owner_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Current owner; only changed by the leave protocol"
    )

    # -------------------------------------------------------------------------
    # Opaque Payloads
    # -------------------------------------------------------------------------
    tags: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )

    current_book: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        nullable=True,
        comment="Book the club is reading right now"
    )

    next_meeting: Mapped[dict[str, Any] | None] = mapped_column(
        JSON,
        nullable=True,
        comment="Earliest upcoming event, refreshed by the events service"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
        comment="Soft-delete marker; deleted clubs are invisible to every read"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    owner: Mapped["User | None"] = relationship(
        "User",
        foreign_keys=[owner_id],
    )

    members: Mapped[list["ClubMembership"]] = relationship(
        "ClubMembership",
        back_populates="club",
        passive_deletes=True,
        order_by="ClubMembership.joined_at",
    )

    def __repr__(self) -> str:
        return f"Club(id={self.id}, name='{self.name}', owner_id={self.owner_id})"


class ClubMembership(Base):
    """
    Membership row linking a user to a club.

    Attributes:
        id: Primary key
        club_id: Foreign key to clubs (owning side)
        user_id: Foreign key to users
        role: member, moderator or admin
        is_approved: gates access for private clubs
        joined_at: when the row was created
    """

    __tablename__ = "club_memberships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    club_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("clubs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role: Mapped[str] = mapped_column(
        String(20),
        default=MemberRole.MEMBER.value,
        nullable=False,
    )
    is_approved: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    club = relationship("Club", back_populates="members")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("club_id", "user_id", name="uq_club_membership_club_user"),
    )

    def __repr__(self) -> str:
        return (
            f"<ClubMembership(club_id={self.club_id}, user_id={self.user_id}, "
            f"role={self.role}, is_approved={self.is_approved})>"
        )
