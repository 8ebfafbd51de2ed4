import pytest

from carwash.models.user import UserRole
from tests.conftest import auth_headers, make_user


@pytest.mark.asyncio
async def test_bonus_lifecycle(client, admin, admin_headers, washer):
    response = await client.post(
        "/api/admin/bonuses",
        json={"type": "washer", "recipient_id": washer.id, "amount": 1000, "reason": "Top washer"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    bonus = response.json()
    assert bonus["status"] == "pending"
    assert bonus["recipient_name"] == "Wale Washer"

    url = f"/api/admin/bonuses/{bonus['id']}"
    response = await client.patch(url, json={"action": "pay"}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.patch(url, json={"action": "approve"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "approved_by is required for approval"

    response = await client.patch(url, json={"action": "approve", "approved_by": admin.id}, headers=admin_headers)
    assert response.json()["status"] == "approved"
    assert response.json()["approved_at"] is not None

    response = await client.patch(url, json={"action": "pay"}, headers=admin_headers)
    assert response.json()["status"] == "paid"

    response = await client.delete(url, headers=admin_headers)
    assert response.status_code == 400

    response = await client.patch(url, json={"action": "refund"}, headers=admin_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_bonus_recipient_must_exist(client, admin, admin_headers, customer):
    response = await client.post(
        "/api/admin/bonuses",
        json={"type": "washer", "recipient_id": admin.id, "amount": 100, "reason": "Nope"},
        headers=admin_headers,
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Washer not found"

    response = await client.post(
        "/api/admin/bonuses",
        json={"type": "customer", "recipient_id": customer["id"], "amount": 100, "reason": "Loyalty"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["recipient_email"] == "chidi@carwash.com"

    response = await client.get("/api/admin/bonuses", params={"type": "customer"}, headers=admin_headers)
    assert len(response.json()) == 1

    response = await client.delete(f"/api/admin/bonuses/{response.json()[0]['id']}", headers=admin_headers)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_expense_end_date_covers_whole_day(client, admin, admin_headers):
    response = await client.post(
        "/api/admin/expenses",
        json={"service_type": "expenses", "amount": 2500, "reason": "Diesel", "expense_date": "2024-05-15T22:30:00"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assert response.json()["admin_id"] == admin.id
    assert response.json()["admin_name"] == "Ada Admin"

    response = await client.get("/api/admin/expenses", params={"end_date": "2024-05-15"}, headers=admin_headers)
    assert len(response.json()) == 1

    response = await client.get("/api/admin/expenses", params={"end_date": "2024-05-14"}, headers=admin_headers)
    assert response.json() == []

    response = await client.get("/api/admin/expenses", params={"start_date": "2024-05-15"}, headers=admin_headers)
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_expenses_are_scoped_to_location(client, super_headers, session_factory):
    locations = []
    for lga in ("Ikeja", "Surulere"):
        response = await client.post(
            "/api/admin/locations", json={"address": f"1 {lga} Road", "lga": lga}, headers=super_headers,
        )
        locations.append(response.json()["id"])
    first = await make_user(session_factory, UserRole.ADMIN, "first-admin@carwash.com", location_id=locations[0])
    second = await make_user(session_factory, UserRole.ADMIN, "second-admin@carwash.com", location_id=locations[1])

    ids = []
    for user in (first, second):
        response = await client.post(
            "/api/admin/expenses",
            json={"service_type": "other", "amount": 100, "reason": "Water"},
            headers=auth_headers(user),
        )
        assert response.status_code == 201
        ids.append(response.json()["id"])
    assert response.json()["location_id"] == locations[1]

    response = await client.get("/api/admin/expenses", headers=auth_headers(first))
    assert [e["id"] for e in response.json()] == [ids[0]]

    response = await client.get(f"/api/admin/expenses/{ids[0]}", headers=auth_headers(second))
    assert response.status_code == 404

    response = await client.get("/api/admin/expenses", headers=super_headers)
    assert len(response.json()) == 2
