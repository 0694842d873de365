"""
API Routers Package

This package contains FastAPI routers that handle API endpoints.

Router Structure:
- auth.py: /api/v1/auth/* endpoints (registration, login, tokens)
- users.py: /api/v1/users/* endpoints (profiles, my clubs)
- clubs.py: /api/v1/clubs/* club CRUD
- memberships.py: join, leave and member administration under /clubs
- ratings.py: /api/v1/clubs/{id}/ratings
- events.py: club events and RSVPs

Each router is imported and registered in main.py.
"""

from bookclub.routers.auth import router as auth_router
from bookclub.routers.clubs import router as clubs_router
from bookclub.routers.events import router as events_router
from bookclub.routers.memberships import router as memberships_router
from bookclub.routers.ratings import router as ratings_router
from bookclub.routers.users import router as users_router

__all__ = [
    "auth_router",
    "users_router",
    "clubs_router",
    "memberships_router",
    "ratings_router",
    "events_router",
]
