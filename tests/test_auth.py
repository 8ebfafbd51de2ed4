import pytest

from tests.conftest import PASSWORD


@pytest.mark.asyncio
async def test_login_returns_token_and_user(client, washer):
    response = await client.post("/api/auth/login", json={"email": "WASHER@carwash.com", "password": PASSWORD})
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["role"] == "car_washer"

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "washer@carwash.com"


@pytest.mark.asyncio
async def test_login_with_wrong_password(client, washer):
    response = await client.post("/api/auth/login", json={"email": "washer@carwash.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401

    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_washer_cannot_reach_admin_routes(client, washer_headers):
    response = await client.get("/api/admin/services", headers=washer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_inactive_user_is_rejected(client, session_factory):
    from carwash.models.user import UserRole
    from tests.conftest import auth_headers, make_user

    user = await make_user(session_factory, UserRole.ADMIN, "gone@carwash.com", is_active=False)
    response = await client.get("/api/auth/me", headers=auth_headers(user))
    assert response.status_code == 400
    assert response.json()["detail"] == "Inactive user"


@pytest.mark.asyncio
async def test_change_password(client, admin, admin_headers):
    url = "/api/auth/change-password"

    response = await client.post(url, json={"current_password": "wrong!", "new_password": "another1"}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.post(url, json={"current_password": PASSWORD, "new_password": PASSWORD}, headers=admin_headers)
    assert response.status_code == 400
    assert "different" in response.json()["detail"]

    response = await client.post(url, json={"current_password": PASSWORD, "new_password": "abc"}, headers=admin_headers)
    assert response.status_code == 422

    response = await client.post(url, json={"current_password": PASSWORD, "new_password": "brand-new"}, headers=admin_headers)
    assert response.status_code == 200

    login = await client.post("/api/auth/login", json={"email": "admin@carwash.com", "password": "brand-new"})
    assert login.status_code == 200
