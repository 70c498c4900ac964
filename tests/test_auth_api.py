"""Auth API tests.

Learn: Tests cover:
1. Registration, email normalisation and duplicate prevention
2. Login, and that a wrong password and an unknown email look identical
3. Session cookie and bearer header authentication on /auth/profile
4. Uniform "Invalid token" failures
5. Logout clearing the cookie
"""

import uuid

import pytest

from plannora.auth.jwt import create_access_token, verify_token


def _email(prefix="user"):
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_user(client):
    """Register returns the profile plus a token and sets the session cookie."""
    email = _email()
    r = await client.post(
        "/api/auth/register",
        json={"name": "  Test User ", "email": email, "password": "secret-pw-1"},
    )
    assert r.status_code == 201
    user = r.json()
    assert user["email"] == email
    assert user["name"] == "Test User"
    assert "createdAt" in user
    assert user["token"]
    assert "password" not in user
    assert "passwordHash" not in user

    cookie = r.headers["set-cookie"].lower()
    assert cookie.startswith("token=")
    assert "httponly" in cookie
    assert "samesite=lax" in cookie
    assert "path=/" in cookie


@pytest.mark.asyncio
async def test_register_token_binds_user_id(client):
    r = await client.post(
        "/api/auth/register",
        json={"name": "Bound", "email": _email(), "password": "secret-pw-1"},
    )
    user = r.json()
    assert verify_token(user["token"]) == user["id"]


@pytest.mark.asyncio
async def test_register_duplicate_normalised_email(client, register):
    """Emails differing only in case and whitespace are the same account."""
    email = _email("dup")
    await register(name="First", email=email)

    r = await client.post(
        "/api/auth/register",
        json={"name": "Second", "email": f"  {email.upper()} ", "password": "other-pw-2"},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == "User already exists"


@pytest.mark.asyncio
async def test_register_missing_fields(client):
    r = await client.post("/api/auth/register", json={"email": _email()})
    assert r.status_code == 400
    body = r.json()
    assert body["detail"]
    assert {tuple(e["loc"])[-1] for e in body["errors"]} >= {"name", "password"}


@pytest.mark.asyncio
async def test_register_invalid_email(client):
    r = await client.post(
        "/api/auth/register",
        json={"name": "Bad", "email": "not-an-email", "password": "secret-pw-1"},
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_register_short_password(client):
    r = await client.post(
        "/api/auth/register",
        json={"name": "Short", "email": _email(), "password": "abc"},
    )
    assert r.status_code == 400


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(client, register):
    email = _email("login")
    user, _ = await register(name="Login", email=email, password="login-pw-1")

    r = await client.post(
        "/api/auth/login",
        json={"email": email.upper(), "password": "login-pw-1"},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["id"] == user["id"]
    assert verify_token(data["token"]) == user["id"]
    assert r.headers["set-cookie"].lower().startswith("token=")


@pytest.mark.asyncio
async def test_wrong_password_and_unknown_email_fail_identically(client, register):
    email = _email("fail")
    await register(name="Fail", email=email, password="right-pw-1")

    wrong = await client.post(
        "/api/auth/login", json={"email": email, "password": "wrong-pw-1"}
    )
    unknown = await client.post(
        "/api/auth/login", json={"email": _email("ghost"), "password": "wrong-pw-1"}
    )
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"detail": "Invalid email or password"}
    assert "set-cookie" not in wrong.headers


# ═══════════════════════════════════════════════════════════
# Profile / token checks
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_profile_with_bearer(client, register):
    user, headers = await register(name="Bearer")
    r = await client.get("/api/auth/profile", headers=headers)
    assert r.status_code == 200
    assert r.json()["id"] == user["id"]
    assert r.json()["name"] == "Bearer"


@pytest.mark.asyncio
async def test_profile_with_cookie(client, register):
    user, _ = await register(name="Cookie")
    client.cookies.set("token", user["token"])

    r = await client.get("/api/auth/profile")
    assert r.status_code == 200
    assert r.json()["id"] == user["id"]


@pytest.mark.asyncio
async def test_cookie_takes_precedence_over_header(client, register):
    alice, _ = await register(name="Alice")
    _, bob_headers = await register(name="Bob")
    client.cookies.set("token", alice["token"])

    r = await client.get("/api/auth/profile", headers=bob_headers)
    assert r.json()["id"] == alice["id"]


@pytest.mark.asyncio
async def test_profile_without_token(client):
    r = await client.get("/api/auth/profile")
    assert r.status_code == 401
    assert r.json()["detail"] == "Authentication required"
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_garbage_token(client):
    r = await client.get(
        "/api/auth/profile", headers={"Authorization": "Bearer not.a.jwt"}
    )
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token"


@pytest.mark.asyncio
async def test_token_for_deleted_user_is_invalid(client):
    """A well-signed token for an unknown user fails like any bad token."""
    token = create_access_token(str(uuid.uuid4()))
    r = await client.get(
        "/api/auth/profile", headers={"Authorization": f"Bearer {token}"}
    )
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token"


@pytest.mark.asyncio
async def test_non_bearer_scheme_is_ignored(client, register):
    user, _ = await register(name="Basic")
    r = await client.get(
        "/api/auth/profile", headers={"Authorization": f"Basic {user['token']}"}
    )
    assert r.status_code == 401
    assert r.json()["detail"] == "Authentication required"


# ═══════════════════════════════════════════════════════════
# Logout
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_logout_clears_cookie(client):
    r = await client.post("/api/auth/logout")
    assert r.status_code == 200
    assert r.json() == {"message": "Logged out successfully"}
    cookie = r.headers["set-cookie"].lower()
    assert cookie.startswith("token=")
    assert "max-age=0" in cookie


@pytest.mark.asyncio
async def test_auth_responses_are_not_cached(client):
    r = await client.post("/api/auth/logout")
    assert r.headers["Cache-Control"] == "no-store"
