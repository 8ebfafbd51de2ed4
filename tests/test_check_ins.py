import pytest
from sqlalchemy.dialects import postgresql

from carwash.models.check_in import CheckIn
from carwash.models.user import UserRole
from carwash.routers.deps import by_id
from tests.conftest import auth_headers, make_user


@pytest.mark.asyncio
async def test_create_check_in_links_customer_by_plate(client, customer, make_check_in, washer):
    check_in = await make_check_in(plate="lag 123ab", wash_type="delayed")

    assert check_in["customer_id"] == customer["id"]
    assert check_in["customer_name"] == "Chidi Okafor"
    assert check_in["vehicle_make"] == "Toyota"
    assert check_in["license_plate"] == "LAG123AB"
    assert check_in["status"] == "pending"
    assert check_in["payment_status"] == "pending"
    assert check_in["total_amount"] == 5000
    assert check_in["estimated_duration"] == 45
    assert check_in["assigned_washer"] == "Wale Washer"
    assert check_in["services"] == ["Full Wash"]
    assert len(check_in["passcode"]) == 4
    assert check_in["passcode"].isdigit()


@pytest.mark.asyncio
async def test_walk_in_check_in(make_check_in):
    check_in = await make_check_in(plate="KJA 55 XY", total_amount=4200)
    assert check_in["customer_id"] is None
    assert check_in["customer_name"] == "Walk-in Customer"
    assert check_in["total_amount"] == 4200
    assert check_in["passcode"] is None


@pytest.mark.asyncio
async def test_washer_cannot_create_check_in(client, washer_headers, service):
    response = await client.post(
        "/api/admin/check-ins",
        json={"license_plate": "X1", "vehicle_type": "sedan", "wash_type": "instant", "service_ids": [service["id"]]},
        headers=washer_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unknown_service_is_rejected(client, admin_headers, service):
    response = await client.post(
        "/api/admin/check-ins",
        json={"license_plate": "X1", "vehicle_type": "sedan", "wash_type": "instant", "service_ids": [999]},
        headers=admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_status_must_follow_workflow(make_check_in, patch_check_in):
    check_in = await make_check_in()

    response = await patch_check_in(check_in["id"], status="completed")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot change check-in status from pending to completed"

    response = await patch_check_in(check_in["id"], payment_status="paid")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delayed_wash_needs_passcode_from_admin(client, customer, make_check_in, patch_check_in, admin_headers):
    check_in = await make_check_in(wash_type="delayed")
    await patch_check_in(check_in["id"], status="in_progress")

    response = await patch_check_in(check_in["id"], status="completed")
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid passcode"

    response = await patch_check_in(check_in["id"], status="completed", passcode=check_in["passcode"])
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["completed_time"] is not None
    assert data["washer_income"] == 2000
    assert data["company_income"] == 3000

    response = await client.get(f"/api/admin/customers/{customer['id']}", headers=admin_headers)
    assert response.json()["total_visits"] == 1
    assert response.json()["total_spent"] == 5000


@pytest.mark.asyncio
async def test_washer_completes_without_passcode(make_check_in, patch_check_in, washer_headers):
    check_in = await make_check_in(wash_type="delayed")
    await patch_check_in(check_in["id"], status="in_progress", headers=washer_headers)

    response = await patch_check_in(check_in["id"], status="completed", headers=washer_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "completed"


@pytest.mark.asyncio
async def test_washer_completion_flag_is_washer_only(make_check_in, patch_check_in, washer_headers):
    check_in = await make_check_in()

    response = await patch_check_in(check_in["id"], washer_completion_status=True)
    assert response.status_code == 403

    response = await patch_check_in(check_in["id"], washer_completion_status=True, headers=washer_headers)
    assert response.status_code == 200
    assert response.json()["washer_completion_status"] is True

    response = await patch_check_in(check_in["id"], payment_method="cash", headers=washer_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_other_washers_cannot_see_check_in(client, session_factory, make_check_in):
    check_in = await make_check_in()
    other = await make_user(session_factory, UserRole.CAR_WASHER, "other@carwash.com")

    response = await client.get(f"/api/admin/check-ins/{check_in['id']}", headers=auth_headers(other))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_payment_credits_washer_once(client, admin_headers, washer, paid_check_in, patch_check_in):
    assert paid_check_in["status"] == "paid"
    assert paid_check_in["payment_status"] == "paid"
    assert paid_check_in["payment_method"] == "cash"
    assert paid_check_in["paid_time"] is not None

    response = await patch_check_in(paid_check_in["id"], payment_status="paid")
    assert response.status_code == 200

    response = await client.get(f"/api/admin/washers/{washer.id}", headers=admin_headers)
    assert response.json()["washer_profile"]["total_earnings"] == 2000


@pytest.mark.asyncio
async def test_payment_needs_assigned_washer(make_check_in, patch_check_in):
    check_in = await make_check_in(assigned_washer_id=None)
    await patch_check_in(check_in["id"], status="in_progress")
    await patch_check_in(check_in["id"], status="completed")

    response = await patch_check_in(check_in["id"], payment_status="paid")
    assert response.status_code == 400
    assert response.json()["detail"] == "Check-in has no assigned washer to credit"


@pytest.mark.asyncio
async def test_paid_check_in_cannot_be_edited_or_deleted(client, admin_headers, paid_check_in):
    url = f"/api/admin/check-ins/{paid_check_in['id']}"

    response = await client.put(f"{url}/edit", json={"remarks": "late"}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.delete(url, headers=admin_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_edit_replaces_services_and_reprices(client, admin_headers, make_check_in):
    check_in = await make_check_in()
    response = await client.post(
        "/api/admin/services",
        json={"name": "Vacuum", "base_price": 1500, "category": "vacuum", "estimated_duration": 15},
        headers=admin_headers,
    )
    vacuum = response.json()

    response = await client.put(
        f"/api/admin/check-ins/{check_in['id']}/edit",
        json={"service_ids": [check_in["lines"][0]["service_id"], vacuum["id"]], "remarks": "Mind the mirrors"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total_amount"] == 6500
    assert data["estimated_duration"] == 60
    assert data["special_instructions"] == "Mind the mirrors"
    assert sorted(data["services"]) == ["Full Wash", "Vacuum"]


@pytest.mark.asyncio
async def test_delete_rules(client, admin_headers, make_check_in, patch_check_in):
    pending = await make_check_in()
    started = await make_check_in(plate="ABC1")
    await patch_check_in(started["id"], status="in_progress")

    response = await client.delete(f"/api/admin/check-ins/{started['id']}", headers=admin_headers)
    assert response.status_code == 400

    response = await client.delete(f"/api/admin/check-ins/{pending['id']}", headers=admin_headers)
    assert response.status_code == 204

    response = await client.get(f"/api/admin/check-ins/{pending['id']}", headers=admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cancelled_check_in_can_be_deleted(client, admin_headers, make_check_in, patch_check_in):
    check_in = await make_check_in()
    response = await patch_check_in(check_in["id"], status="cancelled", reason="Customer left")
    assert response.json()["status"] == "cancelled"
    assert response.json()["reason"] == "Customer left"

    response = await client.delete(f"/api/admin/check-ins/{check_in['id']}", headers=admin_headers)
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_list_filters_and_my_check_ins(client, admin_headers, washer_headers, make_check_in, patch_check_in):
    first = await make_check_in(plate="AAA111")
    await make_check_in(plate="BBB222")
    await patch_check_in(first["id"], status="in_progress")

    response = await client.get("/api/admin/check-ins", params={"status": "in_progress"}, headers=admin_headers)
    assert [c["id"] for c in response.json()] == [first["id"]]

    response = await client.get("/api/admin/check-ins", params={"search": "bbb"}, headers=admin_headers)
    assert [c["license_plate"] for c in response.json()] == ["BBB222"]

    response = await client.get("/api/admin/my-checkins", headers=washer_headers)
    assert len(response.json()) == 2

    response = await client.get("/api/admin/my-checkins", headers=admin_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_edit_to_delayed_issues_passcode(client, admin_headers, make_check_in, patch_check_in):
    check_in = await make_check_in()
    assert check_in["passcode"] is None

    response = await client.put(
        f"/api/admin/check-ins/{check_in['id']}/edit", json={"wash_type": "delayed"}, headers=admin_headers,
    )
    assert response.status_code == 200
    passcode = response.json()["passcode"]
    assert len(passcode) == 4 and passcode.isdigit()

    await patch_check_in(check_in["id"], status="in_progress")
    response = await patch_check_in(check_in["id"], status="completed", passcode=passcode)
    assert response.status_code == 200
    assert response.json()["status"] == "completed"


@pytest.mark.asyncio
async def test_repricing_completed_check_in_updates_customer_spend(
    client, admin_headers, customer, make_check_in, patch_check_in,
):
    check_in = await make_check_in()
    await patch_check_in(check_in["id"], status="in_progress")
    await patch_check_in(check_in["id"], status="completed")

    response = await client.put(
        f"/api/admin/check-ins/{check_in['id']}/edit", json={"total_amount": 6500}, headers=admin_headers,
    )
    assert response.status_code == 200

    response = await client.get(f"/api/admin/customers/{customer['id']}", headers=admin_headers)
    assert response.json()["total_visits"] == 1
    assert response.json()["total_spent"] == 6500


def test_balance_changes_lock_their_rows():
    locked = str(by_id(CheckIn, 1, for_update=True).compile(dialect=postgresql.dialect()))
    assert locked.rstrip().endswith("FOR UPDATE")
    assert "FOR UPDATE" not in str(by_id(CheckIn, 1).compile(dialect=postgresql.dialect()))


async def admins_at_two_locations(client, super_headers, session_factory):
    admins = []
    for lga in ("Ikeja", "Lekki"):
        response = await client.post(
            "/api/admin/locations", json={"address": f"2 {lga} Way", "lga": lga}, headers=super_headers,
        )
        admins.append(await make_user(
            session_factory, UserRole.ADMIN, f"{lga.lower()}@carwash.com", location_id=response.json()["id"],
        ))
    return admins


@pytest.mark.asyncio
async def test_check_ins_are_scoped_to_location(client, super_headers, session_factory, make_check_in):
    ikeja, lekki = await admins_at_two_locations(client, super_headers, session_factory)
    check_in = await make_check_in(headers=auth_headers(ikeja))

    response = await client.get("/api/admin/check-ins", headers=auth_headers(ikeja))
    assert [c["id"] for c in response.json()] == [check_in["id"]]

    response = await client.get("/api/admin/check-ins", headers=auth_headers(lekki))
    assert response.json() == []

    response = await client.get("/api/admin/check-ins", headers=super_headers)
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_dashboard_is_scoped_to_location(client, super_headers, session_factory, make_check_in, patch_check_in):
    ikeja, lekki = await admins_at_two_locations(client, super_headers, session_factory)
    headers = auth_headers(ikeja)
    check_in = await make_check_in(headers=headers)
    await patch_check_in(check_in["id"], headers=headers, status="in_progress")
    await patch_check_in(check_in["id"], headers=headers, status="completed")
    response = await patch_check_in(check_in["id"], headers=headers, payment_status="paid", payment_method="cash")
    assert response.status_code == 200

    response = await client.get("/api/admin/dashboard-metrics", headers=headers)
    assert response.json()["income"]["daily"] == 3000
    assert response.json()["car_count"]["daily"] == 1

    response = await client.get("/api/admin/dashboard-metrics", headers=auth_headers(lekki))
    assert response.json()["income"] == {"daily": 0, "weekly": 0, "monthly": 0}
    assert response.json()["car_count"] == {"daily": 0, "weekly": 0, "monthly": 0}
    assert response.json()["top_washers"] == []
