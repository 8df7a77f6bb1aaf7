from .conftest import register


async def test_register_sets_session_cookie(client):
    user = await register(client, "Budi@Example.com", name="Budi")

    assert user["email"] == "budi@example.com"
    assert user["role"] == "user"
    assert user["membership_type"] == "non_member"
    assert "psikotes_token" in client.cookies

    me = await client.get("/api/users/me")
    assert me.status_code == 200
    assert me.json()["id"] == user["id"]


async def test_duplicate_email_is_409(client, make_client):
    await register(client, "budi@example.com")
    response = await make_client().post(
        "/api/auth/register", json={"email": "BUDI@example.com", "password": "lainnya123"}
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "Email sudah terdaftar."


async def test_short_password_is_rejected(client):
    response = await client.post("/api/auth/register", json={"email": "budi@example.com", "password": "123"})
    assert response.status_code == 400


async def test_login_and_logout(client, make_client):
    await register(client, "budi@example.com", password="rahasia123")

    fresh = make_client()
    wrong = await fresh.post("/api/auth/login", json={"email": "budi@example.com", "password": "salah"})
    assert wrong.status_code == 401
    assert wrong.json()["detail"] == "Email atau password salah."

    login = await fresh.post("/api/auth/login", json={"email": "budi@example.com", "password": "rahasia123"})
    assert login.status_code == 200
    assert (await fresh.get("/api/users/me")).status_code == 200

    assert (await fresh.post("/api/auth/logout")).json() == {"success": True}
    assert (await fresh.get("/api/users/me")).status_code == 401


async def test_bearer_token_is_accepted(client, make_client):
    await register(client, "budi@example.com", password="rahasia123")

    scripted = make_client()
    token = (await scripted.post(
        "/api/auth/token", json={"email": "budi@example.com", "password": "rahasia123"}
    )).json()["access_token"]

    response = await scripted.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.json()["email"] == "budi@example.com"


async def test_garbage_token_is_401(client):
    response = await client.get("/api/users/me", headers={"Authorization": "Bearer bukan-token"})
    assert response.status_code == 401


async def test_heartbeat_marks_user_online(user_client, make_client):
    first = (await user_client.get("/api/me/status")).json()
    second = (await user_client.get("/api/me/status")).json()

    assert first["status"] == "offline"
    assert second["status"] == "online"
    assert second["last_seen_at"] is not None

    statuses = (await user_client.get("/api/user-status")).json()
    assert statuses[0]["email"] == "budi@example.com"
    assert statuses[0]["status"] == "online"


async def test_user_status_requires_login(client):
    assert (await client.get("/api/user-status")).status_code == 401
