import pytest

from carwash.models.user import UserRole
from tests.conftest import auth_headers, make_user


@pytest.mark.asyncio
async def test_dashboard_metrics(client, admin_headers, washer, paid_check_in, make_check_in):
    await make_check_in(plate="NEW1")

    response = await client.get("/api/admin/dashboard-metrics", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["income"] == {"daily": 3000, "weekly": 3000, "monthly": 3000}
    assert data["car_count"] == {"daily": 1, "weekly": 1, "monthly": 1}
    assert data["active_washers"] == 1
    assert data["pending_check_ins_today"] == 1
    assert data["low_stock_items"] == 0
    assert data["top_washers"][0]["washer_id"] == washer.id
    assert data["top_washers"][0]["cars_washed"] == 2


@pytest.mark.asyncio
async def test_financial_report_current_month(client, admin_headers, paid_check_in):
    await client.post(
        "/api/admin/expenses",
        json={"service_type": "salary", "amount": 700, "reason": "Weekly wages"},
        headers=admin_headers,
    )

    response = await client.get("/api/admin/financial-reports", params={"period": 1}, headers=admin_headers)
    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 1
    row = rows[0]
    assert row["car_wash_revenue"] == 3000
    assert row["total_revenue"] == 3000
    assert row["washer_salaries"] == 700
    assert row["total_expenses"] == 700
    assert row["net_profit"] == 2300
    assert row["car_wash_count"] == 1
    assert row["customer_count"] == 0


@pytest.mark.asyncio
async def test_payment_and_performance_reports(client, admin_headers, washer, paid_check_in, make_check_in):
    await make_check_in(plate="OWED1")

    response = await client.get("/api/admin/payment-reports", headers=admin_headers)
    report = response.json()
    assert report["total_paid"] == 5000
    assert report["total_pending"] == 5000
    assert report["paid_count"] == 1
    assert report["pending_count"] == 1
    assert report["by_method"] == {"cash": 5000}
    assert report["daily"][0]["count"] == 1

    response = await client.get("/api/admin/performance-reports", headers=admin_headers)
    rows = response.json()
    assert len(rows) == 1
    assert rows[0]["washer_name"] == "Wale Washer"
    assert rows[0]["cars_washed"] == 2
    assert rows[0]["completed"] == 1
    assert rows[0]["washer_income"] == 2000


@pytest.mark.asyncio
async def test_carwasher_dashboard(client, washer_headers, paid_check_in, make_check_in):
    await make_check_in(plate="NEXT1")

    response = await client.get("/api/admin/carwasher-dashboard", headers=washer_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total_earnings"] == 2000
    assert data["pending_check_ins"] == 1
    assert data["completed_today"] == 1
    assert data["earnings_today"] == 2000
    assert len(data["recent_check_ins"]) == 2


@pytest.mark.asyncio
async def test_worker_earnings_and_history(client, admin_headers, washer, washer_headers, paid_check_in):
    response = await client.post("/api/admin/payment-requests", json={"amount": 500}, headers=washer_headers)
    request_id = response.json()["id"]
    for new_status in ("approved", "paid"):
        await client.patch(
            f"/api/admin/payment-requests/{request_id}", json={"status": new_status}, headers=admin_headers,
        )

    response = await client.get("/api/worker/earnings", headers=washer_headers)
    earnings = response.json()
    assert earnings["total_earnings"] == 1500
    assert earnings["lifetime_income"] == 2000
    assert earnings["total_paid_out"] == 500
    assert earnings["pending_requests"] == 0
    assert earnings["check_ins"][0]["services"] == ["Full Wash"]

    response = await client.get("/api/worker/income-history", headers=washer_headers)
    history = response.json()
    assert [(e["kind"], e["amount"]) for e in history["entries"]] == [("check_in", 2000), ("payment", -500)]
    assert len(history["payment_requests"]) == 1

    response = await client.get("/api/worker/profile", headers=washer_headers)
    assert response.json()["id"] == washer.id

    response = await client.get("/api/worker/earnings", headers=admin_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_worker_bonuses_only_show_own(client, admin_headers, washer, washer_headers, customer):
    await client.post(
        "/api/admin/bonuses",
        json={"type": "washer", "recipient_id": washer.id, "amount": 800, "reason": "Busy week"},
        headers=admin_headers,
    )
    await client.post(
        "/api/admin/bonuses",
        json={"type": "customer", "recipient_id": customer["id"], "amount": 300, "reason": "Loyalty"},
        headers=admin_headers,
    )

    response = await client.get("/api/worker/bonuses", headers=washer_headers)
    assert [b["amount"] for b in response.json()] == [800]


@pytest.mark.asyncio
async def test_financial_report_leaves_out_rejected_wages(client, session_factory, admin_headers):
    washer = await make_user(session_factory, UserRole.CAR_WASHER, "wages@carwash.com", earnings=5000)
    headers = auth_headers(washer)

    response = await client.post("/api/admin/payment-requests", json={"amount": 1000}, headers=headers)
    await client.patch(
        f"/api/admin/payment-requests/{response.json()['id']}", json={"status": "rejected"}, headers=admin_headers,
    )
    await client.post("/api/admin/payment-requests", json={"amount": 400}, headers=headers)

    response = await client.get("/api/admin/financial-reports", params={"period": 1}, headers=admin_headers)
    row = response.json()[0]
    assert row["total_wages"] == 400
    assert row["pending_wages"] == 400
