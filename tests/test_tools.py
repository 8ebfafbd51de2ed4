import pytest


async def create_tool(client, headers, **overrides):
    body = {"name": "Pressure Washer", "category": "Equipment", "replacement_cost": 10000, "total_quantity": 10}
    body.update(overrides)
    response = await client.post("/api/admin/tools", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_available_defaults_to_total(client, admin_headers):
    tool = await create_tool(client, admin_headers)
    assert tool["available_quantity"] == 10

    response = await client.post(
        "/api/admin/tools",
        json={"name": "Bucket", "category": "Tools", "total_quantity": 2, "available_quantity": 3},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Available quantity cannot exceed total quantity"


@pytest.mark.asyncio
async def test_assign_and_return_tool(client, admin_headers, washer):
    tool = await create_tool(client, admin_headers)

    response = await client.post(
        "/api/admin/washer-tools",
        json={"washer_id": washer.id, "tool_id": tool["id"], "quantity": 20},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Insufficient quantity. Available: 10, Requested: 20"

    response = await client.post(
        "/api/admin/washer-tools",
        json={"washer_id": washer.id, "tool_id": tool["id"], "quantity": 3},
        headers=admin_headers,
    )
    assert response.status_code == 201
    assignment = response.json()
    assert assignment["tool_type"] == "equipment"
    assert assignment["amount"] == 10000
    assert assignment["washer_name"] == "Wale Washer"

    response = await client.get(f"/api/admin/tools/{tool['id']}", headers=admin_headers)
    assert response.json()["available_quantity"] == 7

    response = await client.delete(f"/api/admin/tools/{tool['id']}", headers=admin_headers)
    assert response.status_code == 400

    url = f"/api/admin/washer-tools/{assignment['id']}"
    response = await client.put(url, json={"is_returned": True}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["returned_date"] is not None

    response = await client.put(url, json={"is_returned": True}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Tool already returned"

    response = await client.get(f"/api/admin/tools/{tool['id']}", headers=admin_headers)
    assert response.json()["available_quantity"] == 10


@pytest.mark.asyncio
async def test_low_availability_filter(client, admin_headers, washer):
    tool = await create_tool(client, admin_headers)
    await create_tool(client, admin_headers, name="Vacuum", total_quantity=4)
    await client.post(
        "/api/admin/washer-tools",
        json={"washer_id": washer.id, "tool_id": tool["id"], "quantity": 8},
        headers=admin_headers,
    )

    response = await client.get("/api/admin/tools", params={"status": "low_availability"}, headers=admin_headers)
    assert [t["name"] for t in response.json()] == ["Pressure Washer"]


@pytest.mark.asyncio
async def test_deductions_split_supplies_from_tools(client, admin_headers, washer, washer_headers):
    equipment = await create_tool(client, admin_headers)
    cloth = await create_tool(client, admin_headers, name="Microfiber Cloth", category="Supplies", replacement_cost=500)
    for tool, quantity in ((equipment, 1), (cloth, 2)):
        response = await client.post(
            "/api/admin/washer-tools",
            json={"washer_id": washer.id, "tool_id": tool["id"], "quantity": quantity},
            headers=admin_headers,
        )
        assert response.status_code == 201

    response = await client.get("/api/admin/calculate-deductions", headers=washer_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["material_deductions"] == 1000
    assert data["tool_deductions"] == 10000
    assert data["total_deductions"] == 11000
    assert data["has_unreturned_tools"] is True
    assert len(data["unreturned_tools"]) == 2

    response = await client.get("/api/admin/washer-tools", headers=washer_headers)
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_paid_tool_charge_deducts_earnings(client, admin_headers, washer):
    tool = await create_tool(client, admin_headers)
    response = await client.post(
        "/api/admin/tool-charges",
        json={"washer_id": washer.id, "tool_id": tool["id"], "charge_amount": 1500, "reason": "Broken nozzle"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    charge = response.json()
    assert charge["tool_name"] == "Pressure Washer"
    assert charge["replacement_cost"] == 10000
    assert charge["status"] == "pending"

    url = f"/api/admin/tool-charges/{charge['id']}"
    response = await client.patch(url, json={"status": "paid"}, headers=admin_headers)
    assert response.json()["status"] == "paid"
    assert response.json()["paid_at"] is not None

    response = await client.get(f"/api/admin/washers/{washer.id}", headers=admin_headers)
    assert response.json()["washer_profile"]["total_earnings"] == -1500

    response = await client.patch(url, json={"status": "waived"}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.delete(url, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_tool_charge_needs_a_name(client, admin_headers, washer):
    response = await client.post(
        "/api/admin/tool-charges",
        json={"washer_id": washer.id, "charge_amount": 100, "reason": "Lost"},
        headers=admin_headers,
    )
    assert response.status_code == 400
