"""
Tests for the root and health endpoints and the global error handlers.
"""

from unittest.mock import patch

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from bookclub.models import Club, User


def test_root(client: TestClient):
    response = client.get("/")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["docs"] == "/docs"


def test_health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "healthy"
    assert data["cache"] == {"status": "disabled"}
    assert data["rate_limiting"]["enabled"] is False


def test_database_error_is_opaque(
    client: TestClient,
    scenario_club: Club,
    alice: User,
    headers,
):
    """Persistence failures inside the leave protocol surface as a generic 500."""
    failure = OperationalError("DELETE FROM club_memberships", {}, Exception("connection lost"))

    with patch("bookclub.services.membership.store.delete_membership", side_effect=failure):
        response = client.post(f"/api/v1/clubs/{scenario_club.id}/leave", headers=headers(alice))

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["code"] == "database_error"
    assert "connection lost" not in response.json()["detail"]
