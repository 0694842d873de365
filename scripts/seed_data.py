#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample users, clubs and memberships for
local development.

USAGE:
    # From the project root with the virtualenv active
    python scripts/seed_data.py

Every club is created through the membership service, so owner_id,
members_count and the owner's admin membership are consistent from the
start. All seeded users share the password "SecurePass123".
"""

from sqlalchemy import delete
from sqlalchemy.orm import Session

from bookclub.database import SessionLocal, create_tables
from bookclub.models import Club, ClubMembership, ClubRating, Event, EventRSVP, User
from bookclub.services import membership
from bookclub.services.security import hash_password

SEED_PASSWORD = "SecurePass123"


def clear_data(db: Session) -> None:
    """Delete every row, children first."""
    print("Clearing existing data...")
    for model in (EventRSVP, Event, ClubRating, ClubMembership, Club, User):
        db.execute(delete(model))
    db.commit()
    print("Data cleared.")


def create_users(db: Session) -> dict[str, User]:
    print("Creating users...")
    users_data = [
        ("ada", "Ada Lovelace", "London"),
        ("jorge", "Jorge Borges", "Buenos Aires"),
        ("octavia", "Octavia Butler", "Pasadena"),
        ("italo", "Italo Calvino", "Turin"),
        ("ursula", "Ursula Le Guin", "Portland"),
    ]

    hashed = hash_password(SEED_PASSWORD)
    users = {}
    for username, full_name, location in users_data:
        user = User(
            email=f"{username}@example.com",
            username=username,
            hashed_password=hashed,
            full_name=full_name,
            location=location,
            is_active=True,
        )
        db.add(user)
        users[username] = user

    db.commit()
    for user in users.values():
        db.refresh(user)

    print(f"Created {len(users)} users.")
    return users


def create_clubs(db: Session, users: dict[str, User]) -> list[Club]:
    print("Creating clubs...")
    clubs_data = [
        {
            "owner": "ursula",
            "name": "Sci-Fi Saturdays",
            "description": "Classic and modern science fiction, one book a month.",
            "location": "Portland",
            "genre": "Science Fiction",
            "tags": ["scifi", "classics"],
            "current_book": {"title": "The Dispossessed", "author": "Ursula K. Le Guin"},
            "members": ["ada", "octavia", "italo"],
        },
        {
            "owner": "jorge",
            "name": "Labyrinth Readers",
            "description": "Short fiction, metafiction and puzzles.",
            "location": "Buenos Aires",
            "genre": "Literary Fiction",
            "is_private": True,
            "max_members": 12,
            "tags": ["short-stories"],
            "members": ["italo"],
        },
        {
            "owner": "ada",
            "name": "Analytical Engines",
            "description": "History of computing and mathematics.",
            "location": "London",
            "genre": "Non-fiction",
            "members": ["jorge", "ursula"],
        },
    ]

    clubs = []
    for data in clubs_data:
        owner = users[data.pop("owner")]
        member_names = data.pop("members")

        club = membership.create_club(db, owner.id, **data)
        for name in member_names:
            membership.join_club(db, club.id, users[name].id)

        db.refresh(club)
        clubs.append(club)
        print(f"  - {club.name}: owner={owner.username} members={club.members_count}")

    return clubs


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clears existing data before seeding.
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()

    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        users = create_users(db)
        clubs = create_clubs(db, users)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Users: {len(users)} (password: {SEED_PASSWORD})")
        print(f"  - Clubs: {len(clubs)}")
        print("\nAPI documentation at http://localhost:8000/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
