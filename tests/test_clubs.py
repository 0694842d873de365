"""
Tests for Club Endpoints

Tests cover:
- POST /clubs/ - create (owner becomes first member)
- GET /clubs/ - pagination and filters
- GET /clubs/{id}
- PUT /clubs/{id} - owner only, name uniqueness
- DELETE /clubs/{id} - close, owner only
"""

from fastapi import status
from fastapi.testclient import TestClient

from bookclub.models import Club, User


# =============================================================================
# Test: POST /clubs/
# =============================================================================


class TestCreateClub:

    def test_create_club(self, client: TestClient, owner: User, headers):
        response = client.post(
            "/api/v1/clubs/",
            headers=headers(owner),
            json={
                "name": "  Mystery Mondays  ",
                "description": "Whodunits every Monday",
                "genre": "Mystery",
                "tags": ["Crime", "crime ", "Noir"],
                "current_book": {"title": "The Big Sleep", "author": "Raymond Chandler"},
            },
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["name"] == "Mystery Mondays"
        assert data["owner_id"] == owner.id
        assert data["members_count"] == 1
        assert data["rating"] == 0.0
        assert data["tags"] == ["crime", "noir"]
        assert data["next_meeting"] is None
        assert data["current_book"]["author"] == "Raymond Chandler"

    def test_creator_is_admin_member(self, client: TestClient, owner: User, headers):
        club_id = client.post(
            "/api/v1/clubs/",
            headers=headers(owner),
            json={"name": "Poetry Circle"},
        ).json()["id"]

        members = client.get(f"/api/v1/clubs/{club_id}/members").json()

        assert len(members) == 1
        assert members[0]["user_id"] == owner.id
        assert members[0]["role"] == "admin"
        assert members[0]["is_approved"] is True

    def test_create_duplicate_name(self, client: TestClient, club: Club, alice: User, headers):
        response = client.post(
            "/api/v1/clubs/",
            headers=headers(alice),
            json={"name": "Sci-Fi Saturdays"},
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "club_name_taken"

    def test_create_short_name(self, client: TestClient, owner: User, headers):
        response = client.post("/api/v1/clubs/", headers=headers(owner), json={"name": " ab "})

        assert response.status_code == 422

    def test_create_unauthenticated(self, client: TestClient):
        response = client.post("/api/v1/clubs/", json={"name": "Nobody's Club"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Test: GET /clubs/
# =============================================================================


class TestListClubs:

    def test_list_empty(self, client: TestClient):
        response = client.get("/api/v1/clubs/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["items"] == []
        assert data["total"] == 0
        assert data["pages"] == 0

    def test_pagination(self, client: TestClient, make_club, owner: User):
        for i in range(12):
            make_club(owner, name=f"Club Number {i:02d}")

        response = client.get("/api/v1/clubs/?page=2&per_page=5")

        data = response.json()
        assert data["total"] == 12
        assert data["page"] == 2
        assert data["per_page"] == 5
        assert data["pages"] == 3
        assert len(data["items"]) == 5

    def test_filters(self, client: TestClient, make_club, owner: User):
        make_club(owner, name="Lisbon Fantasy", location="Lisbon", genre="Fantasy")
        make_club(owner, name="Porto Fantasy", location="Porto", genre="Fantasy")
        make_club(owner, name="Lisbon History", location="Lisbon", genre="History")

        by_location = client.get("/api/v1/clubs/?location=lisbon").json()
        by_both = client.get("/api/v1/clubs/?location=lisbon&genre=fantasy").json()
        by_text = client.get("/api/v1/clubs/?q=porto").json()

        assert by_location["total"] == 2
        assert [c["name"] for c in by_both["items"]] == ["Lisbon Fantasy"]
        assert [c["name"] for c in by_text["items"]] == ["Porto Fantasy"]

    def test_member_count_filter(
        self,
        client: TestClient,
        make_club,
        owner: User,
        alice: User,
        add_member,
    ):
        busy = make_club(owner, name="Busy Club")
        make_club(owner, name="Quiet Club")
        add_member(busy, alice)

        data = client.get("/api/v1/clubs/?min_members=2").json()

        assert [c["name"] for c in data["items"]] == ["Busy Club"]

    def test_closed_clubs_are_hidden(
        self,
        client: TestClient,
        make_club,
        owner: User,
        headers,
    ):
        doomed = make_club(owner, name="Short Lived")
        make_club(owner, name="Long Lived")

        client.delete(f"/api/v1/clubs/{doomed.id}", headers=headers(owner))

        data = client.get("/api/v1/clubs/").json()
        assert [c["name"] for c in data["items"]] == ["Long Lived"]


# =============================================================================
# Test: GET /clubs/{id}
# =============================================================================


class TestGetClub:

    def test_get_club(self, client: TestClient, club: Club, owner: User):
        response = client.get(f"/api/v1/clubs/{club.id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["name"] == "Sci-Fi Saturdays"
        assert data["owner_id"] == owner.id

    def test_get_club_not_found(self, client: TestClient):
        response = client.get("/api/v1/clubs/9999")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Club with id 9999 not found"


# =============================================================================
# Test: PUT /clubs/{id}
# =============================================================================


class TestUpdateClub:

    def test_owner_updates(self, client: TestClient, club: Club, owner: User, headers):
        response = client.put(
            f"/api/v1/clubs/{club.id}",
            headers=headers(owner),
            json={"description": "Now with more space opera", "max_members": 30},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["description"] == "Now with more space opera"
        assert data["max_members"] == 30
        assert data["name"] == "Sci-Fi Saturdays"

    def test_null_name_is_ignored(self, client: TestClient, club: Club, owner: User, headers):
        response = client.put(
            f"/api/v1/clubs/{club.id}",
            headers=headers(owner),
            json={"name": None, "genre": None},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Sci-Fi Saturdays"
        assert response.json()["genre"] is None

    def test_member_cannot_update(
        self,
        client: TestClient,
        scenario_club: Club,
        alice: User,
        headers,
    ):
        response = client.put(
            f"/api/v1/clubs/{scenario_club.id}",
            headers=headers(alice),
            json={"description": "hijacked"},
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "not_club_manager"

    def test_rename_to_taken_name(
        self,
        client: TestClient,
        make_club,
        owner: User,
        headers,
    ):
        make_club(owner, name="First Club")
        second = make_club(owner, name="Second Club")

        response = client.put(
            f"/api/v1/clubs/{second.id}",
            headers=headers(owner),
            json={"name": "First Club"},
        )

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_padded_rename_to_taken_name(
        self,
        client: TestClient,
        make_club,
        owner: User,
        headers,
    ):
        make_club(owner, name="First Club")
        second = make_club(owner, name="Second Club")

        response = client.put(
            f"/api/v1/clubs/{second.id}",
            headers=headers(owner),
            json={"name": "  First Club  "},
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["code"] == "club_name_taken"

    def test_rename_is_stripped(self, client: TestClient, club: Club, owner: User, headers):
        response = client.put(
            f"/api/v1/clubs/{club.id}",
            headers=headers(owner),
            json={"name": "  Space Opera Sundays "},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Space Opera Sundays"

    def test_blank_rename(self, client: TestClient, club: Club, owner: User, headers):
        response = client.put(
            f"/api/v1/clubs/{club.id}",
            headers=headers(owner),
            json={"name": "     "},
        )

        assert response.status_code == 422

    def test_owner_and_count_are_read_only(
        self,
        client: TestClient,
        club: Club,
        owner: User,
        alice: User,
        headers,
    ):
        response = client.put(
            f"/api/v1/clubs/{club.id}",
            headers=headers(owner),
            json={"owner_id": alice.id, "members_count": 50},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["owner_id"] == owner.id
        assert response.json()["members_count"] == 1


# =============================================================================
# Test: DELETE /clubs/{id}
# =============================================================================


class TestDeleteClub:

    def test_owner_closes_club(
        self,
        client: TestClient,
        scenario_club: Club,
        owner: User,
        alice: User,
        headers,
    ):
        response = client.delete(f"/api/v1/clubs/{scenario_club.id}", headers=headers(owner))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get(f"/api/v1/clubs/{scenario_club.id}").status_code == status.HTTP_404_NOT_FOUND
        assert client.get("/api/v1/users/me/clubs", headers=headers(alice)).json() == []

    def test_member_cannot_close(
        self,
        client: TestClient,
        scenario_club: Club,
        alice: User,
        headers,
    ):
        response = client.delete(f"/api/v1/clubs/{scenario_club.id}", headers=headers(alice))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_close_unknown_club(self, client: TestClient, owner: User, headers):
        response = client.delete("/api/v1/clubs/9999", headers=headers(owner))

        assert response.status_code == status.HTTP_404_NOT_FOUND
