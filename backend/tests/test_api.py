"""
MarkSync Backend — API Endpoint Tests
=======================================

What:  End-to-end HTTP tests through the full middleware chain, with the
       pool handle swapped for a per-test SQLite database.

What we test:
    ✅ Health check
    ✅ Register / login happy paths and their 400s
    ✅ Sync: success, invalid payload, store failure (500, generic message)
    ✅ Error envelope shape and X-Request-ID propagation
"""

import pytest
from unittest.mock import AsyncMock, patch

from marksync.services.sync_service import sync_service

REGISTER_BODY = {
    "name": "Erin",
    "username": "erin",
    "email": "erin@example.com",
    "password": "hunter22",
    "confirmPassword": "hunter22",
}


async def register_and_login(client) -> int:
    await client.post("/api/register", json=REGISTER_BODY)
    response = await client.post("/api/login", json={"login": "erin", "password": "hunter22"})
    return response.json()["userId"]


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_connected_database(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_success(self, test_client):
        response = await test_client.post("/api/register", json=REGISTER_BODY)

        assert response.status_code == 200
        assert response.json() == {"success": True}

    @pytest.mark.asyncio
    async def test_duplicate_username(self, test_client):
        await test_client.post("/api/register", json=REGISTER_BODY)
        response = await test_client.post(
            "/api/register", json={**REGISTER_BODY, "email": "other@example.com"}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "duplicate_field"
        assert data["message"] == "Username already taken"
        assert data["details"] == {"field": "username"}

    @pytest.mark.asyncio
    async def test_duplicate_email(self, test_client):
        await test_client.post("/api/register", json=REGISTER_BODY)
        response = await test_client.post(
            "/api/register", json={**REGISTER_BODY, "username": "erin2"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Email already registered"

    @pytest.mark.asyncio
    async def test_missing_field_is_400(self, test_client):
        body = {k: v for k, v in REGISTER_BODY.items() if k != "email"}
        response = await test_client.post("/api/register", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "validation_error"
        assert data["details"]["errors"][0]["field"] == "email"

    @pytest.mark.asyncio
    async def test_password_mismatch(self, test_client):
        response = await test_client.post(
            "/api/register", json={**REGISTER_BODY, "confirmPassword": "different"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Passwords do not match"

    @pytest.mark.asyncio
    async def test_invalid_email(self, test_client):
        response = await test_client.post(
            "/api/register", json={**REGISTER_BODY, "email": "not-an-email"}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid email format"


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_returns_user_id(self, test_client):
        await test_client.post("/api/register", json=REGISTER_BODY)

        response = await test_client.post(
            "/api/login", json={"login": "erin@example.com", "password": "hunter22"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["username"] == "erin"
        assert isinstance(data["userId"], int)

    @pytest.mark.asyncio
    async def test_bad_credentials(self, test_client):
        await test_client.post("/api/register", json=REGISTER_BODY)

        wrong_password = await test_client.post(
            "/api/login", json={"login": "erin", "password": "nope"}
        )
        unknown_user = await test_client.post(
            "/api/login", json={"login": "nobody", "password": "nope"}
        )

        assert wrong_password.status_code == unknown_user.status_code == 400
        assert wrong_password.json()["message"] == unknown_user.json()["message"]
        assert wrong_password.json()["error"] == "invalid_credentials"


class TestSyncEndpoint:

    @pytest.mark.asyncio
    async def test_sync_success(self, test_client, bookmarks_of):
        user_id = await register_and_login(test_client)

        response = await test_client.post(
            "/api/sync/bookmarks",
            json={
                "userId": user_id,
                "bookmarks": [
                    {"title": "Docs", "url": "https://docs.python.org"},
                    {"title": "Docs again", "url": "https://docs.python.org"},
                ],
            },
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "received": 2, "stored": 1}
        assert await bookmarks_of(user_id) == {"https://docs.python.org": "Docs"}

    @pytest.mark.asyncio
    async def test_invalid_payload(self, test_client):
        response = await test_client.post(
            "/api/sync/bookmarks", json={"userId": 1, "bookmarks": "nope"}
        )

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "invalid_payload"
        assert data["message"] == "Invalid payload"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", ["²", 2**40])
    async def test_unusable_user_id_is_400(self, test_client, user_id):
        response = await test_client.post(
            "/api/sync/bookmarks", json={"userId": user_id, "bookmarks": []}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_payload"
        assert response.json()["details"] == {"field": "userId"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[1, 2, 3], "text", 42])
    async def test_non_object_body(self, test_client, body):
        response = await test_client.post("/api/sync/bookmarks", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_payload"

    @pytest.mark.asyncio
    async def test_unparseable_json(self, test_client):
        response = await test_client.post(
            "/api/sync/bookmarks",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_store_failure_is_generic_500(self, test_client, bookmarks_of):
        user_id = await register_and_login(test_client)
        bookmark = {"title": "Kept", "url": "https://kept.example"}
        await test_client.post(
            "/api/sync/bookmarks", json={"userId": user_id, "bookmarks": [bookmark]}
        )

        with patch.object(
            sync_service.store,
            "insert_skip_duplicates",
            AsyncMock(side_effect=RuntimeError("deadlock detected on relation bookmarks")),
        ):
            response = await test_client.post(
                "/api/sync/bookmarks", json={"userId": user_id, "bookmarks": []}
            )

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Database error"
        assert "deadlock" not in response.text
        assert await bookmarks_of(user_id) == {"https://kept.example": "Kept"}


class TestRequestId:

    @pytest.mark.asyncio
    async def test_client_request_id_is_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "ext-1234"})
        assert response.headers["X-Request-ID"] == "ext-1234"

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, test_client):
        response = await test_client.post("/api/sync/bookmarks", json={})

        assert response.status_code == 400
        assert response.json()["request_id"] == response.headers["X-Request-ID"]
