# tests/test_routes/test_auth_routes.py
from agricoventas.core.config import get_settings

REGISTER_PAYLOAD = {
    "username": "maria_campo",
    "email": "maria@correo.co",
    "password": "Cosecha2024",
    "firstName": "María",
    "lastName": "Campo",
    "userType": "SELLER",
}


async def test_register_returns_user_and_token(client):
    response = await client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["user"]["username"] == "maria_campo"
    assert body["data"]["user"]["userType"] == "SELLER"
    assert "passwordHash" not in body["data"]["user"]
    assert body["data"]["token"]
    assert get_settings().REFRESH_COOKIE_NAME in response.cookies


async def test_register_duplicate_username(client):
    await client.post("/api/auth/register", json=REGISTER_PAYLOAD)

    response = await client.post(
        "/api/auth/register", json={**REGISTER_PAYLOAD, "email": "otra@correo.co"}
    )

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert response.json()["error"]["message"] == "Username already exists"


async def test_register_weak_password(client):
    response = await client.post("/api/auth/register", json={**REGISTER_PAYLOAD, "password": "corta"})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert any(detail["field"] == "password" for detail in error["details"])


async def test_register_as_admin_is_rejected(client):
    response = await client.post("/api/auth/register", json={**REGISTER_PAYLOAD, "userType": "ADMIN"})

    assert response.status_code == 400


async def test_login_and_me(client, buyer):
    response = await client.post("/api/auth/login", json={"username": "comprador", "password": "Secret123"})
    assert response.status_code == 200
    token = response.json()["data"]["token"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert me.status_code == 200
    assert me.json()["data"]["id"] == buyer.id


async def test_login_by_email(client, buyer):
    response = await client.post(
        "/api/auth/login", json={"username": "comprador@example.com", "password": "Secret123"}
    )

    assert response.status_code == 200


async def test_login_wrong_password(client, buyer):
    response = await client.post("/api/auth/login", json={"username": "comprador", "password": "Nope12345"})

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid username or password"


async def test_login_inactive_account(client, create_user):
    await create_user("dormido", is_active=False)

    response = await client.post("/api/auth/login", json={"username": "dormido", "password": "Secret123"})

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Account is inactive"


async def test_me_requires_token(client):
    response = await client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


async def test_me_rejects_garbage_token(client):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


async def test_refresh_with_body_token(client, buyer):
    login = await client.post("/api/auth/login", json={"username": "comprador", "password": "Secret123"})
    refresh_token = login.cookies.get(get_settings().REFRESH_COOKIE_NAME)
    client.cookies.clear()

    response = await client.post("/api/auth/refresh", json={"refreshToken": refresh_token})

    assert response.status_code == 200
    assert response.json()["data"]["token"]


async def test_change_password(client, buyer, auth_headers):
    response = await client.put(
        "/api/auth/change-password",
        json={"currentPassword": "Secret123", "newPassword": "NuevaClave9"},
        headers=auth_headers(buyer),
    )
    assert response.status_code == 200

    login = await client.post("/api/auth/login", json={"username": "comprador", "password": "NuevaClave9"})
    assert login.status_code == 200


async def test_change_password_wrong_current(client, buyer, auth_headers):
    response = await client.put(
        "/api/auth/change-password",
        json={"currentPassword": "Wrong1234", "newPassword": "NuevaClave9"},
        headers=auth_headers(buyer),
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Current password is incorrect"
