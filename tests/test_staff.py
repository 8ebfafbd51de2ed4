import pytest

from carwash.models.user import UserRole
from tests.conftest import auth_headers, make_user


async def create_location(client, headers, lga="Ikeja"):
    response = await client.post(
        "/api/admin/locations", json={"address": f"1 {lga} Road", "lga": lga}, headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_admin_management_is_super_admin_only(client, admin_headers, super_headers):
    response = await client.get("/api/admin/admins", headers=admin_headers)
    assert response.status_code == 403

    response = await client.get("/api/admin/admins", headers=super_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_create_admin_at_location(client, super_headers, admin):
    location = await create_location(client, super_headers)
    response = await client.post(
        "/api/admin/admins",
        json={"name": "Lola", "email": "Lola@carwash.com", "password": "secret1", "location_id": location["id"]},
        headers=super_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "lola@carwash.com"
    assert data["role"] == "admin"
    assert data["admin_profile"]["location_id"] == location["id"]

    response = await client.post(
        "/api/admin/admins",
        json={"name": "Dup", "email": "admin@carwash.com", "password": "secret1"},
        headers=super_headers,
    )
    assert response.status_code == 409

    response = await client.post(
        "/api/admin/admins",
        json={"name": "Nope", "email": "nope@carwash.com", "password": "secret1", "role": "car_washer"},
        headers=super_headers,
    )
    assert response.status_code == 400

    response = await client.get("/api/admin/admins", params={"location_id": location["id"]}, headers=super_headers)
    assert [a["name"] for a in response.json()] == ["Lola"]


@pytest.mark.asyncio
async def test_last_super_admin_cannot_be_deleted(client, super_admin, super_headers, session_factory):
    response = await client.delete(f"/api/admin/admins/{super_admin.id}", headers=super_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete the last super admin"

    other = await make_user(session_factory, UserRole.SUPER_ADMIN, "second-boss@carwash.com")
    response = await client.delete(f"/api/admin/admins/{other.id}", headers=super_headers)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_washer_crud(client, admin, admin_headers):
    response = await client.post(
        "/api/admin/washers",
        json={"name": "Tunde", "email": "tunde@carwash.com", "password": "secret1", "hourly_rate": 500},
        headers=admin_headers,
    )
    assert response.status_code == 201
    washer = response.json()
    assert washer["role"] == "car_washer"
    assert washer["washer_profile"]["assigned_admin_id"] == admin.id
    assert washer["washer_profile"]["total_earnings"] == 0

    response = await client.patch(
        f"/api/admin/washers/{washer['id']}", json={"is_available": False, "phone": "0802"}, headers=admin_headers,
    )
    assert response.json()["washer_profile"]["is_available"] is False
    assert response.json()["phone"] == "0802"

    response = await client.get("/api/admin/washers", params={"status": "unavailable"}, headers=admin_headers)
    assert [w["name"] for w in response.json()] == ["Tunde"]

    response = await client.get(f"/api/admin/washers/{admin.id}", headers=admin_headers)
    assert response.status_code == 404

    response = await client.delete(f"/api/admin/washers/{washer['id']}", headers=admin_headers)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_washer_details_and_revenue(client, admin_headers, washer, paid_check_in):
    response = await client.get(f"/api/admin/washers/{washer.id}/details", headers=admin_headers)
    assert response.status_code == 200
    details = response.json()
    assert details["total_check_ins"] == 1
    assert details["completed_check_ins"] == 1
    assert details["unreturned_tools"] == 0
    assert details["recent_check_ins"][0]["id"] == paid_check_in["id"]

    response = await client.post(
        "/api/admin/tool-charges",
        json={"washer_id": washer.id, "tool_name": "Hose", "charge_amount": 300, "reason": "Torn"},
        headers=admin_headers,
    )
    await client.patch(f"/api/admin/tool-charges/{response.json()['id']}", json={"status": "paid"}, headers=admin_headers)

    response = await client.post(f"/api/admin/washers/{washer.id}/revenue", headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"washer_id": washer.id, "total_earnings": 1700, "paid_income": 2000, "paid_out": 300}


@pytest.mark.asyncio
async def test_location_stats_and_workers(client, super_headers, session_factory):
    location = await create_location(client, super_headers)
    manager = await make_user(session_factory, UserRole.ADMIN, "ikeja@carwash.com", location_id=location["id"])
    response = await client.post(
        "/api/admin/washers",
        json={"name": "Femi", "email": "femi@carwash.com", "password": "secret1"},
        headers=auth_headers(manager),
    )
    assert response.status_code == 201

    response = await client.get("/api/admin/locations/stats", headers=super_headers)
    assert response.status_code == 200
    stats = response.json()[0]
    assert stats["location_id"] == location["id"]
    assert stats["admin_count"] == 1
    assert stats["washer_count"] == 1
    assert stats["check_in_count"] == 0

    response = await client.get(f"/api/admin/locations/{location['id']}/workers", headers=super_headers)
    assert [w["name"] for w in response.json()] == ["Femi"]

    response = await client.get(f"/api/admin/locations/{location['id']}/admins", headers=super_headers)
    assert [a["email"] for a in response.json()] == ["ikeja@carwash.com"]


@pytest.mark.asyncio
async def test_only_super_admin_creates_locations(client, admin_headers):
    response = await client.post(
        "/api/admin/locations", json={"address": "2 Lekki Road", "lga": "Eti-Osa"}, headers=admin_headers,
    )
    assert response.status_code == 403
