"""HTTP tests for registration, login, refresh, logout and the profile endpoints."""

from datetime import timedelta

import pytest

from conftest import bearer, register_and_login

ALICE = {"username": "alice", "email": "a@x.io", "password": "Abcdef1!"}


class TestRegisterEndpoint:
    async def test_created(self, client):
        response = await client.post("/auth/register", json=ALICE)
        assert response.status_code == 201
        user = response.json()["user"]
        assert user["username"] == "alice"
        assert user["email"] == "a@x.io"
        assert user["role"] == "user"
        assert "password_hash" not in user

    async def test_duplicate(self, client):
        await client.post("/auth/register", json=ALICE)
        response = await client.post("/auth/register", json=ALICE)
        assert response.status_code == 409
        assert response.json() == {"error": "user with this email already exists", "type": "conflict"}

    async def test_weak_password(self, client):
        response = await client.post("/auth/register", json=ALICE | {"password": "abcdef1!"})
        assert response.status_code == 400
        assert response.json() == {
            "error": "password must contain at least one uppercase letter",
            "type": "validation",
        }

    @pytest.mark.parametrize("email", ["a@x..io", "a@.x.io", "a@x.io.", "a@-x.io"])
    async def test_malformed_email(self, client, email):
        response = await client.post("/auth/register", json=ALICE | {"email": email})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid email address", "type": "validation"}

    async def test_missing_field(self, client):
        response = await client.post("/auth/register", json={"username": "alice"})
        assert response.status_code == 400
        assert response.json()["type"] == "validation"
        assert response.json()["error"].startswith("Validation failed")

    async def test_malformed_json(self, client):
        response = await client.post(
            "/auth/register", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400


class TestLoginFlow:
    async def test_register_login_profile(self, client):
        tokens = await register_and_login(client)
        assert tokens["user"]["email"] == "a@x.io"
        assert "password_hash" not in tokens["user"]

        response = await client.get("/users/profile", headers=bearer(tokens["access_token"]))
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "a@x.io"

    async def test_wrong_password_same_as_unknown_user(self, client):
        await client.post("/auth/register", json=ALICE)

        unknown = await client.post("/auth/login", json={"email": "nobody@x.io", "password": "Abcdef1!"})
        wrong = await client.post("/auth/login", json={"email": "a@x.io", "password": "Abcdef1?"})

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json() == {"error": "invalid email or password", "type": "invalid_credentials"}

    async def test_refresh_returns_same_refresh_token(self, client, session_store, clock):
        tokens = await register_and_login(client)
        clock.advance(timedelta(minutes=1))

        response = await client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})

        assert response.status_code == 200
        refreshed = response.json()
        assert refreshed["access_token"] != tokens["access_token"]
        assert refreshed["refresh_token"] == tokens["refresh_token"]
        session = next(iter(session_store.sessions.values()))
        assert session.last_activity == clock()

    async def test_refresh_with_garbage(self, client):
        response = await client.post("/auth/refresh", json={"refresh_token": "garbage"})
        assert response.status_code == 401
        assert response.json() == {"error": "invalid refresh token", "type": "unauthorized"}

    async def test_logout_invalidates_access_token(self, client):
        tokens = await register_and_login(client)
        headers = bearer(tokens["access_token"])

        response = await client.post("/auth/logout", headers=headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Successfully logged out"}

        response = await client.get("/users/profile", headers=headers)
        assert response.status_code == 401

    async def test_relogin_replaces_session(self, client, session_store):
        first = await register_and_login(client)
        response = await client.post("/auth/login", json={"email": "a@x.io", "password": "Abcdef1!"})
        second = response.json()

        assert (await client.get("/users/profile", headers=bearer(first["access_token"]))).status_code == 401
        assert (await client.get("/users/profile", headers=bearer(second["access_token"]))).status_code == 200
        assert len(session_store.sessions) == 1


class TestGuard:
    async def test_missing_header(self, client):
        response = await client.get("/users/profile")
        assert response.status_code == 401
        assert response.json() == {"error": "authorization token required", "type": "unauthorized"}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_bare_scheme(self, client):
        response = await client.get("/users/profile", headers={"Authorization": "Bearer"})
        assert response.status_code == 401

    async def test_extra_segment(self, client):
        tokens = await register_and_login(client)
        response = await client.get(
            "/users/profile", headers={"Authorization": f"Bearer {tokens['access_token']} extra"}
        )
        assert response.status_code == 401

    async def test_expired_token(self, client, clock, config):
        tokens = await register_and_login(client)
        clock.advance(config.jwt_access_expiry + timedelta(seconds=1))
        response = await client.get("/users/profile", headers=bearer(tokens["access_token"]))
        assert response.status_code == 401
        assert response.json()["error"] == "invalid or expired token"


class TestProfile:
    async def test_update_profile(self, client):
        tokens = await register_and_login(client)
        headers = bearer(tokens["access_token"])

        response = await client.put(
            "/users/profile", json={"bio": "Writes about Python"}, headers=headers
        )
        assert response.status_code == 200
        assert response.json()["user"]["bio"] == "Writes about Python"

        response = await client.get("/users/profile", headers=headers)
        assert response.json()["user"]["bio"] == "Writes about Python"
        assert response.json()["user"]["profile_picture"] is None


class TestHealth:
    async def test_health(self, client):
        response = await client.get("http://test/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    async def test_unknown_route(self, client):
        response = await client.get("/nowhere")
        assert response.status_code == 404
        assert response.json()["type"] == "http_error"
