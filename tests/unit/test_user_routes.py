"""
Unit tests for user routes with focus on access control and error handling.
"""

import pytest
from fastapi import status

from conftest import login_headers

MISSING_ID = "7b0a4c4e-8f7e-4a53-9c55-0c2f1c6f3a10"


class TestProfile:
    """Test cases for the caller's own profile."""

    def test_get_profile(self, client, alice):
        response = client.get("/api/v1/users/me", headers=login_headers(client, "alice@example.com"))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == alice.id
        assert data["email"] == "alice@example.com"
        assert "hashed_password" not in data

    def test_profile_requires_token(self, client):
        response = client.get("/api/v1/users/me")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["success"] is False

    def test_invalid_token(self, client):
        response = client.get("/api/v1/users/me", headers={"Authorization": "Bearer nonsense"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_update_profile(self, client, alice):
        headers = login_headers(client, "alice@example.com")

        response = client.put("/api/v1/users/me", json={"name": "Alice Smith"}, headers=headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["name"] == "Alice Smith"
        assert response.json()["email"] == "alice@example.com"

    def test_profile_update_cannot_change_role(self, client, alice):
        headers = login_headers(client, "alice@example.com")

        response = client.put("/api/v1/users/me", json={"role": "admin"}, headers=headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["role"] == "user"

    def test_update_profile_to_taken_email(self, client, alice, bob):
        headers = login_headers(client, "bob@example.com")

        response = client.put("/api/v1/users/me", json={"email": "alice@example.com"}, headers=headers)

        assert response.status_code == status.HTTP_409_CONFLICT


class TestPasswordChange:

    def test_change_password(self, client, alice):
        headers = login_headers(client, "alice@example.com")

        response = client.put(
            "/api/v1/users/me/password",
            json={"current_password": "secret123", "new_password": "another-secret"},
            headers=headers,
        )

        assert response.status_code == status.HTTP_204_NO_CONTENT
        login_headers(client, "alice@example.com", "another-secret")

    def test_wrong_current_password(self, client, alice):
        headers = login_headers(client, "alice@example.com")

        response = client.put(
            "/api/v1/users/me/password",
            json={"current_password": "nope", "new_password": "another-secret"},
            headers=headers,
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["errors"][0]["field"] == "current_password"


class TestAdministration:
    """Test cases for admin-only account management."""

    def test_regular_user_is_forbidden(self, client, alice):
        headers = login_headers(client, "alice@example.com")

        assert client.get("/api/v1/users/", headers=headers).status_code == status.HTTP_403_FORBIDDEN
        assert client.delete(f"/api/v1/users/{alice.id}", headers=headers).status_code == status.HTTP_403_FORBIDDEN

    def test_anonymous_is_unauthorized(self, client):
        assert client.get("/api/v1/users/").status_code == status.HTTP_401_UNAUTHORIZED

    def test_list_users(self, client, admin, alice, bob):
        headers = login_headers(client, "admin@example.com")

        response = client.get("/api/v1/users/", headers=headers)

        assert response.status_code == status.HTTP_200_OK
        emails = {user["email"] for user in response.json()}
        assert emails == {"admin@example.com", "alice@example.com", "bob@example.com"}

    @pytest.mark.parametrize("params", [{"skip": -1}, {"limit": 0}, {"limit": 101}])
    def test_invalid_pagination(self, client, admin, params):
        headers = login_headers(client, "admin@example.com")

        response = client.get("/api/v1/users/", params=params, headers=headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_create_admin_account(self, client, admin):
        headers = login_headers(client, "admin@example.com")

        response = client.post("/api/v1/users/", json={
            "email": "second-admin@example.com",
            "password": "secret123",
            "name": "Second Admin",
            "role": "admin",
        }, headers=headers)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["role"] == "admin"

    def test_deactivate_user_ends_their_sessions(self, client, admin, alice):
        alice_headers = login_headers(client, "alice@example.com")
        headers = login_headers(client, "admin@example.com")

        response = client.put(f"/api/v1/users/{alice.id}", json={"is_active": False}, headers=headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_active"] is False
        assert client.get("/api/v1/users/me", headers=alice_headers).status_code == status.HTTP_401_UNAUTHORIZED

    def test_delete_user(self, client, admin, alice):
        headers = login_headers(client, "admin@example.com")

        response = client.delete(f"/api/v1/users/{alice.id}", headers=headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = client.delete(f"/api/v1/users/{alice.id}", headers=headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_update_unknown_user(self, client, admin):
        headers = login_headers(client, "admin@example.com")

        response = client.put(f"/api/v1/users/{MISSING_ID}", json={"name": "Ghost"}, headers=headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND
