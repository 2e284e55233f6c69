"""
Tests for the user CRUD endpoints.
"""

from datetime import datetime

import pytest


class TestCreateUser:
    """POST /users"""

    def test_create_returns_generated_id(self, client):
        """A new user gets an id and is echoed back."""
        response = client.post("/users", json={"name": "Ali", "email": "ali@example.com"})

        assert response.status_code == 201
        assert response.json() == {
            "success": True,
            "message": "User created successfully",
            "data": {"id": 1, "name": "Ali", "email": "ali@example.com"},
        }

    def test_duplicate_email_conflicts(self, client, create_user):
        """A second user with the same email is rejected and not stored."""
        create_user()

        response = client.post("/users", json={"name": "Other", "email": "ali@example.com"})

        assert response.status_code == 409
        assert response.json() == {"success": False, "error": "Email already exists"}
        assert client.get("/users").json()["count"] == 1

    @pytest.mark.parametrize("payload", [
        {},
        {"name": "Ali"},
        {"email": "ali@example.com"},
        {"name": "   ", "email": "ali@example.com"},
    ])
    def test_missing_fields(self, client, payload):
        """Name and email are both required."""
        response = client.post("/users", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Name and email are required"

    def test_invalid_email(self, client):
        response = client.post("/users", json={"name": "Ali", "email": "not-an-email"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid email format"
        assert response.json()["errors"] == {"email": ["Invalid email format"]}

    def test_escaped_length_is_checked(self, client):
        """Length is measured after markup escaping, as the value would be stored."""
        response = client.post("/users", json={"name": "&" * 100, "email": "amp@example.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "Name must not exceed 255 characters"
        assert client.get("/users").json()["count"] == 0

    def test_email_domain_is_normalized(self, client):
        response = client.post("/users", json={"name": "Ali", "email": "ali@EXAMPLE.com"})

        assert response.status_code == 201
        assert response.json()["data"]["email"] == "ali@example.com"

    def test_duplicate_email_ignores_case(self, client, create_user):
        create_user(email="ali@example.com")

        response = client.post("/users", json={"name": "Other", "email": "ALI@Example.com"})

        assert response.status_code == 409
        assert response.json()["error"] == "Email already exists"

    def test_malformed_body_reads_as_empty(self, client):
        response = client.post(
            "/users",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Name and email are required"

    def test_markup_is_stripped(self, client):
        """Tags are removed and remaining special characters escaped before storage."""
        response = client.post(
            "/users",
            json={"name": "<b>Tom</b> & Jerry", "email": "tom@example.com"},
        )

        assert response.status_code == 201
        assert response.json()["data"]["name"] == "Tom &amp; Jerry"

    def test_short_password_rejected(self, client):
        response = client.post(
            "/users",
            json={"name": "Ali", "email": "ali@example.com", "password": "123"},
        )

        assert response.status_code == 400
        assert response.json()["errors"] == {"password": ["Password must be at least 6 characters"]}

    def test_password_never_returned(self, client):
        response = client.post(
            "/users",
            json={"name": "Ali", "email": "ali@example.com", "password": "secret123"},
        )
        user_id = response.json()["data"]["id"]

        fetched = client.get(f"/users/{user_id}").json()["data"]
        listed = client.get("/users").json()["data"][0]
        for data in (response.json()["data"], fetched, listed):
            assert "password" not in data
            assert "password_hash" not in data

    def test_password_required_when_configured(self, client):
        client.app.state.settings.require_password = True

        response = client.post("/users", json={"name": "Ali", "email": "ali@example.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "Password is required"


class TestGetUser:
    """GET /users and GET /users/{id}"""

    def test_get_existing(self, client, create_user):
        user = create_user()

        response = client.get(f"/users/{user['id']}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == user["id"]
        assert data["email"] == "ali@example.com"
        assert data["created_at"] is not None
        assert data["updated_at"] is not None

    def test_get_missing(self, client):
        response = client.get("/users/999")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "User not found"}

    def test_non_numeric_id_is_not_found(self, client):
        response = client.get("/users/abc")

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    def test_list_empty(self, client):
        response = client.get("/users")

        assert response.status_code == 200
        assert response.json() == {"success": True, "count": 0, "data": []}

    def test_list_newest_first(self, client, create_user):
        create_user("Jaffar", "jaffar@example.com")
        create_user("Ahmed", "ahmed@example.com")
        create_user("Ali", "ali@example.com")

        body = client.get("/users").json()

        assert body["count"] == 3
        assert [u["name"] for u in body["data"]] == ["Ali", "Ahmed", "Jaffar"]


class TestUpdateUser:
    """PUT /users/{id}"""

    def test_update_name_keeps_email(self, client, create_user):
        user = create_user()

        response = client.put(f"/users/{user['id']}", json={"name": "Ali Khan"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "User updated successfully",
            "data": {"id": user["id"], "name": "Ali Khan", "email": "ali@example.com"},
        }

    def test_update_email_keeps_name(self, client, create_user):
        user = create_user()

        response = client.put(f"/users/{user['id']}", json={"email": "khan@example.com"})

        assert response.status_code == 200
        assert response.json()["data"] == {
            "id": user["id"], "name": "Ali", "email": "khan@example.com",
        }

    def test_updated_at_advances(self, client, create_user):
        user = create_user()
        before = client.get(f"/users/{user['id']}").json()["data"]

        client.put(f"/users/{user['id']}", json={"name": "Ali Khan"})
        after = client.get(f"/users/{user['id']}").json()["data"]

        assert datetime.fromisoformat(after["updated_at"]) > datetime.fromisoformat(before["updated_at"])
        assert after["created_at"] == before["created_at"]

    def test_keeping_own_email_is_allowed(self, client, create_user):
        user = create_user()

        response = client.put(f"/users/{user['id']}", json={"email": "ali@example.com"})

        assert response.status_code == 200

    def test_taking_another_users_email_conflicts(self, client, create_user):
        create_user("Ahmed", "ahmed@example.com")
        user = create_user()

        response = client.put(f"/users/{user['id']}", json={"email": "ahmed@example.com"})

        assert response.status_code == 409
        assert response.json()["error"] == "Email already exists"

    def test_empty_update_rejected(self, client, create_user):
        user = create_user()

        response = client.put(f"/users/{user['id']}", json={})

        assert response.status_code == 400
        assert response.json()["error"] == "At least name or email is required"

    def test_invalid_email_rejected(self, client, create_user):
        user = create_user()

        response = client.put(f"/users/{user['id']}", json={"email": "nope"})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid email format"

    def test_update_missing_user(self, client):
        response = client.put("/users/999", json={"name": "Ghost"})

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    def test_update_without_id(self, client):
        response = client.put("/users", json={"name": "Ghost"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "User ID is required"}


class TestDeleteUser:
    """DELETE /users/{id}"""

    def test_delete_twice(self, client, create_user):
        user = create_user()

        first = client.delete(f"/users/{user['id']}")
        second = client.delete(f"/users/{user['id']}")

        assert first.status_code == 200
        assert first.json() == {"success": True, "message": "User deleted successfully"}
        assert second.status_code == 404
        assert second.json()["success"] is False

    def test_deleted_user_is_gone(self, client, create_user):
        user = create_user()

        client.delete(f"/users/{user['id']}")

        assert client.get(f"/users/{user['id']}").status_code == 404

    def test_delete_without_id(self, client):
        response = client.delete("/users")

        assert response.status_code == 400
        assert response.json()["error"] == "User ID is required"

    def test_ids_are_not_reused(self, client, create_user):
        first = create_user()
        client.delete(f"/users/{first['id']}")

        second = create_user("Ahmed", "ahmed@example.com")

        assert second["id"] != first["id"]
