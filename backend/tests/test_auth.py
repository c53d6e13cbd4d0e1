"""
Authentication and authorization tests.

Tokens come from the hosted auth provider; the API resolves them to
local profiles and enforces active state, access expiry and roles.
"""

from datetime import datetime, timedelta

import pytest
from backend.app.core.jwt import create_access_token, decode_access_token


# TEST 1: Profile lookup
@pytest.mark.asyncio
async def test_me_returns_profile(client, user_headers, user_profile):
    response = await client.get("/v1/auth/me", headers=user_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == user_profile.id
    assert data["email"] == "driver@example.com"
    assert data["role"] == "USER"


@pytest.mark.asyncio
async def test_missing_token_rejected(client):
    response = await client.get("/v1/auth/me")
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_garbage_token_rejected(client):
    response = await client.get("/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["error_code"] == "ERR_UNAUTHORIZED"


@pytest.mark.asyncio
async def test_expired_token_rejected(client, user_profile, make_headers):
    headers = make_headers(user_profile.id, user_profile.email, expires_delta=timedelta(seconds=-5))
    response = await client.get("/v1/auth/me", headers=headers)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_wrong_audience_rejected(client, user_profile):
    token = create_access_token({"sub": user_profile.id, "aud": "anon"})
    response = await client.get("/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_profile_rejected(client, make_headers):
    response = await client.get("/v1/auth/me", headers=make_headers("ghost-0001"))
    assert response.status_code == 401


# TEST 2: Real-time state checks
@pytest.mark.asyncio
async def test_inactive_profile_rejected(client, make_profile, make_headers):
    profile = await make_profile("user-blocked", "blocked@example.com", is_active=False)
    response = await client.get("/v1/auth/me", headers=make_headers(profile.id))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_access_window_expired(client, make_profile, make_headers):
    profile = await make_profile(
        "user-temp", "temp@example.com", access_expires_at=datetime.now() - timedelta(hours=1)
    )
    response = await client.get("/v1/auth/me", headers=make_headers(profile.id))

    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_AUTH_002"


@pytest.mark.asyncio
async def test_access_window_still_open(client, make_profile, make_headers):
    profile = await make_profile(
        "user-temp2", "temp2@example.com", access_expires_at=datetime.now() + timedelta(days=1)
    )
    response = await client.get("/v1/auth/me", headers=make_headers(profile.id))
    assert response.status_code == 200


# TEST 3: Roles
@pytest.mark.asyncio
async def test_user_cannot_reach_admin_endpoints(client, user_headers):
    response = await client.get("/v1/admin/users", headers=user_headers)
    assert response.status_code == 403


def test_token_round_trip_keeps_claims():
    payload = decode_access_token(create_access_token({"sub": "abc", "email": "a@b.co"}))
    assert payload["sub"] == "abc"
    assert payload["aud"] == "authenticated"
