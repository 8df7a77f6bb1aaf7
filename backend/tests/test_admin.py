import pytest

from psikotes.core.database import AsyncSessionLocal
from psikotes.services.user_service import UserService, InvalidUserUpdateError, parse_expiry

from .conftest import register


@pytest.fixture
async def admin_client(make_client):
    async with AsyncSessionLocal() as db:
        await UserService(db).create_user("admin@example.com", "adminpass", name="Admin", role="admin")
    client = make_client()
    response = await client.post("/api/auth/login", json={"email": "admin@example.com", "password": "adminpass"})
    assert response.status_code == 200
    return client


async def test_regular_users_are_forbidden(user_client):
    assert (await user_client.get("/api/admin/users")).status_code == 403


async def test_list_users_with_session_counts(admin_client, user_client):
    await user_client.post("/api/test-sessions", json={
        "user_type": "santai", "category": "mixed", "difficulty": "mudah", "count": 1,
    })

    users = {user["email"]: user for user in (await admin_client.get("/api/admin/users")).json()}

    assert users["budi@example.com"]["total_sessions"] == 1
    assert users["budi@example.com"]["completed_sessions"] == 0
    assert users["admin@example.com"]["role"] == "admin"


async def test_admin_creates_member(admin_client):
    response = await admin_client.post("/api/admin/users", json={
        "email": "member@example.com", "password": "member123", "membership_type": "member",
    })
    assert response.status_code == 201
    assert response.json()["membership_type"] == "member"

    duplicate = await admin_client.post("/api/admin/users", json={
        "email": "member@example.com", "password": "member123",
    })
    assert duplicate.status_code == 409


async def test_membership_update_and_downgrade(admin_client, make_client):
    target = make_client()
    user = await register(target, "sari@example.com")
    url = f"/api/admin/users/{user['id']}"

    upgraded = await admin_client.patch(url, json={
        "membership_type": "member", "membership_expires_at": "2030-01-31T17:00:00+07:00",
    })
    assert upgraded.status_code == 200
    assert upgraded.json()["membership_type"] == "member"
    assert upgraded.json()["membership_expires_at"].startswith("2030-01-31T10:00:00")

    downgraded = await admin_client.patch(url, json={"membership_type": "non_member"})
    assert downgraded.json()["membership_expires_at"] is None


async def test_invalid_updates_are_400(admin_client, make_client):
    user = await register(make_client(), "sari@example.com")
    url = f"/api/admin/users/{user['id']}"

    bad_date = await admin_client.patch(url, json={"membership_expires_at": "besok"})
    assert bad_date.status_code == 400
    assert bad_date.json()["detail"] == "Tanggal kedaluwarsa tidak valid."

    empty = await admin_client.patch(url, json={})
    assert empty.status_code == 400


async def test_unknown_user_is_404(admin_client):
    response = await admin_client.patch("/api/admin/users/tidak-ada", json={"role": "admin"})
    assert response.status_code == 404


async def test_admin_toggles_session_visibility(admin_client, user_client):
    session_id = (await user_client.post("/api/test-sessions", json={
        "user_type": "santai", "category": "mixed", "difficulty": "mudah", "count": 1,
    })).json()["session_id"]

    response = await admin_client.patch(f"/api/admin/sessions/{session_id}", json={"is_public": True})
    assert response.json()["is_public"] is True
    assert response.json()["public_id"]

    missing = await admin_client.patch("/api/admin/sessions/tidak-ada", json={"is_public": True})
    assert missing.status_code == 404


def test_parse_expiry_normalises_to_naive_utc():
    assert parse_expiry("2030-01-31").isoformat() == "2030-01-31T00:00:00"
    assert parse_expiry("2030-01-31T00:00:00Z").tzinfo is None
    assert parse_expiry("  ") is None
    with pytest.raises(InvalidUserUpdateError):
        parse_expiry("31/01/2030")
