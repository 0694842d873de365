"""
pytest Fixtures for Book Club API Tests

Shared fixtures used across all test files.

FIXTURE SCOPES:
- engine: function scope, a brand-new in-memory database per test
- db_session: function scope, bound straight to the engine
- client: TestClient wired to db_session through dependency overrides

The membership service commits and rolls back itself, so there is no outer
transaction to roll back; each test gets its own empty database instead.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# This disables rate limiting and Redis and sets a test secret key
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REDIS_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bookclub.database import Base, get_db
from bookclub.main import app
from bookclub.models import Club, User
from bookclub.services import membership
from bookclub.services.security import create_access_token, hash_password

TEST_PASSWORD = "SecurePass123"


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    """
    SQLite in-memory engine.

    StaticPool keeps the single connection alive for the whole test.
    Without it, the in-memory database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )
    session = TestSessionLocal()

    yield session

    session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Test client using the test database.

    get_db is overridden so every request shares db_session.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# USER FIXTURES
# =============================================================================

@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory creating active users with the shared test password."""

    def _make_user(username: str, **fields) -> User:
        user = User(
            email=f"{username}@example.com",
            username=username,
            hashed_password=hash_password(TEST_PASSWORD),
            full_name=fields.pop("full_name", username.title()),
            is_active=fields.pop("is_active", True),
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def owner(make_user) -> User:
    return make_user("owner")


@pytest.fixture
def alice(make_user) -> User:
    return make_user("alice")


@pytest.fixture
def bob(make_user) -> User:
    return make_user("bob")


@pytest.fixture
def carol(make_user) -> User:
    return make_user("carol")


def auth_headers(user: User) -> dict:
    """Bearer header carrying a fresh access token for the user."""
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers() -> Callable[[User], dict]:
    return auth_headers


# =============================================================================
# CLUB FIXTURES
# =============================================================================

@pytest.fixture
def make_club(db_session: Session) -> Callable[..., Club]:
    """Factory creating clubs through the membership service."""
    counter = {"n": 0}

    def _make_club(club_owner: User, **fields) -> Club:
        counter["n"] += 1
        fields.setdefault("name", f"Test Club {counter['n']}")
        return membership.create_club(db_session, club_owner.id, **fields)

    return _make_club


@pytest.fixture
def add_member(db_session: Session) -> Callable[..., None]:
    """
    Put a user into a club with the requested approval state.

    Joins a public club (approved at once) and, when approved=False,
    flips the row back to pending through the owner.
    """

    def _add_member(club: Club, user: User, approved: bool = True) -> None:
        membership.join_club(db_session, club.id, user.id)
        if not approved:
            membership.update_member(
                db_session,
                club.id,
                club.owner_id,
                user.id,
                is_approved=False,
            )

    return _add_member


@pytest.fixture
def club(make_club, owner: User) -> Club:
    return make_club(owner, name="Sci-Fi Saturdays", genre="Science Fiction", location="Lisbon")


@pytest.fixture
def scenario_club(club: Club, alice: User, bob: User, add_member) -> Club:
    """
    Club with owner, one approved member (alice) and one pending member (bob).

    members_count == 3.
    """
    add_member(club, alice, approved=True)
    add_member(club, bob, approved=False)
    return club
