"""
Integration tests for profile administration and the audit trail.
"""

import pytest


@pytest.mark.asyncio
async def test_admin_lists_profiles(client, admin_headers, user_profile):
    response = await client.get("/v1/admin/users", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert {u["email"] for u in data["users"]} == {"admin@example.com", "driver@example.com"}


@pytest.mark.asyncio
async def test_admin_registers_profile(client, admin_headers):
    response = await client.post("/v1/admin/users", headers=admin_headers, json={
        "id": "user-new",
        "email": "new@example.com",
        "full_name": "New Driver",
    })

    assert response.status_code == 201
    assert response.json()["role"] == "USER"

    duplicate = await client.post("/v1/admin/users", headers=admin_headers, json={
        "id": "user-other", "email": "new@example.com",
    })
    assert duplicate.status_code == 409


@pytest.mark.asyncio
async def test_blocking_takes_effect_immediately(client, admin_headers, user_profile, user_headers):
    response = await client.patch(
        f"/v1/admin/users/{user_profile.id}", headers=admin_headers, json={"is_active": False}
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    blocked = await client.get("/v1/auth/me", headers=user_headers)
    assert blocked.status_code == 403

    logs = await client.get(
        "/v1/admin/audit-logs", headers=admin_headers, params={"action": "PROFILE_BLOCKED"}
    )
    assert logs.json()["total"] == 1
    assert logs.json()["logs"][0]["target_id"] == user_profile.id


@pytest.mark.asyncio
async def test_admin_cannot_block_self(client, admin_headers, admin_profile):
    response = await client.patch(
        f"/v1/admin/users/{admin_profile.id}", headers=admin_headers, json={"is_active": False}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_profile_is_404(client, admin_headers):
    response = await client.patch("/v1/admin/users/nobody", headers=admin_headers, json={"full_name": "X"})
    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"
