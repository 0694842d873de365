"""
Club Rating Model

A member's 1-5 star rating of a club, with an optional comment.

Business Rules:
- One rating per user per club (unique constraint); rating again updates it
- Rating must be 1-5
- Club.rating / Club.ratings_count are recalculated after every change
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookclub.database import Base


class ClubRating(Base):
    """
    Rating left by a user on a club.

    Attributes:
        id: Primary key
        club_id: Foreign key to clubs table
        user_id: Foreign key to users table
        rating: 1-5 star rating
        comment: Optional free text
        created_at: When the rating was first given
        updated_at: When the rating was last changed
    """

    __tablename__ = "club_ratings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

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

    rating: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Rating from 1-5 stars",
    )
    comment: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

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

    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("club_id", "user_id", name="uq_club_rating_club_user"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_club_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<ClubRating(id={self.id}, club_id={self.club_id}, user_id={self.user_id}, rating={self.rating})>"
