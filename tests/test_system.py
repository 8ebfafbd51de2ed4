import unittest

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from carwash.config import get_settings
from carwash.database import Base, get_db
from carwash.main import app, seed_super_admin


class TestCarWashSystem(unittest.IsolatedAsyncioTestCase):
    """End-to-end pass over the API: seed, log in, run one wash, read the dashboard."""

    async def asyncSetUp(self):
        self.engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False, class_=AsyncSession)

        async def override_get_db():
            async with self.session_factory() as session:
                yield session

        app.dependency_overrides[get_db] = override_get_db
        self.client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")

    async def asyncTearDown(self):
        await self.client.aclose()
        app.dependency_overrides.clear()
        await self.engine.dispose()

    async def login(self):
        settings = get_settings()
        await seed_super_admin(self.session_factory)
        response = await self.client.post(
            "/api/auth/login",
            json={"email": settings.first_superadmin_email, "password": settings.first_superadmin_password},
        )
        self.assertEqual(response.status_code, 200)
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    async def test_1_health_check(self):
        """Test health check endpoint"""
        response = await self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "healthy")

        response = await self.client.get("/")
        self.assertIn("Car Wash", response.json()["message"])

    async def test_2_seed_is_idempotent(self):
        """Seeding twice leaves a single super admin"""
        headers = await self.login()
        await seed_super_admin(self.session_factory)
        response = await self.client.get("/api/admin/admins", headers=headers)
        self.assertEqual(len(response.json()), 1)
        self.assertEqual(response.json()[0]["role"], "super_admin")

    async def test_3_wash_to_dashboard(self):
        """One car from check-in to payment shows up on the dashboard"""
        headers = await self.login()

        response = await self.client.post(
            "/api/admin/washers",
            json={"name": "Sade", "email": "sade@carwash.com", "password": "secret1"},
            headers=headers,
        )
        washer = response.json()
        response = await self.client.post(
            "/api/admin/services",
            json={"name": "Quick Rinse", "base_price": 2000, "category": "exterior", "estimated_duration": 15},
            headers=headers,
        )
        service = response.json()

        response = await self.client.post(
            "/api/admin/check-ins",
            json={
                "license_plate": "EKY 1 AA",
                "vehicle_type": "hatchback",
                "wash_type": "instant",
                "service_ids": [service["id"]],
                "assigned_washer_id": washer["id"],
            },
            headers=headers,
        )
        self.assertEqual(response.status_code, 201)
        check_in_id = response.json()["id"]

        for body in ({"status": "in_progress"}, {"status": "completed"}, {"payment_status": "paid", "payment_method": "pos"}):
            response = await self.client.patch(f"/api/admin/check-ins/{check_in_id}", json=body, headers=headers)
            self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "paid")

        response = await self.client.get("/api/admin/dashboard-metrics", headers=headers)
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["income"]["daily"], 1200)
        self.assertEqual(data["car_count"]["monthly"], 1)
        self.assertEqual(data["top_washers"][0]["washer_name"], "Sade")


if __name__ == "__main__":
    unittest.main(verbosity=2)
