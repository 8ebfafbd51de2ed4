import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import carwash.models  # noqa: F401
from carwash.auth import create_access_token, hash_password
from carwash.database import Base, get_db
from carwash.main import app
from carwash.models.user import AdminProfile, User, UserRole, WasherProfile

PASSWORD = "secret123"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def make_user(session_factory, role, email, name=None, location_id=None, earnings=0.0, **kwargs):
    async with session_factory() as session:
        user = User(
            name=name or email.split("@")[0].title(),
            email=email,
            hashed_password=hash_password(PASSWORD),
            role=role,
            **kwargs,
        )
        if role == UserRole.CAR_WASHER:
            user.washer_profile = WasherProfile(total_earnings=earnings, is_available=True)
        else:
            user.admin_profile = AdminProfile(location_id=location_id)
        session.add(user)
        await session.commit()
        return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest_asyncio.fixture
async def super_admin(session_factory):
    return await make_user(session_factory, UserRole.SUPER_ADMIN, "boss@carwash.com", name="Boss")


@pytest_asyncio.fixture
async def admin(session_factory):
    return await make_user(session_factory, UserRole.ADMIN, "admin@carwash.com", name="Ada Admin")


@pytest_asyncio.fixture
async def washer(session_factory):
    return await make_user(session_factory, UserRole.CAR_WASHER, "washer@carwash.com", name="Wale Washer")


@pytest_asyncio.fixture
async def super_headers(super_admin):
    return auth_headers(super_admin)


@pytest_asyncio.fixture
async def admin_headers(admin):
    return auth_headers(admin)


@pytest_asyncio.fixture
async def washer_headers(washer):
    return auth_headers(washer)


@pytest_asyncio.fixture
async def service(client, admin_headers):
    response = await client.post(
        "/api/admin/services",
        json={
            "name": "Full Wash",
            "base_price": 5000,
            "category": "exterior",
            "estimated_duration": 45,
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def customer(client, admin_headers):
    response = await client.post(
        "/api/admin/customers",
        json={
            "name": "Chidi Okafor",
            "email": "chidi@carwash.com",
            "phone": "08030000000",
            "vehicles": [{"license_plate": "lag 123 ab", "vehicle_type": "sedan", "make": "Toyota"}],
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest_asyncio.fixture
async def make_check_in(client, admin_headers, service, washer):
    async def factory(plate="LAG123AB", wash_type="instant", headers=None, **extra):
        body = {
            "license_plate": plate,
            "vehicle_type": "sedan",
            "wash_type": wash_type,
            "service_ids": [service["id"]],
            "assigned_washer_id": washer.id,
        }
        body.update(extra)
        response = await client.post("/api/admin/check-ins", json=body, headers=headers or admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    return factory


@pytest_asyncio.fixture
async def patch_check_in(client, admin_headers):
    async def patch(check_in_id, headers=None, **body):
        return await client.patch(
            f"/api/admin/check-ins/{check_in_id}", json=body, headers=headers or admin_headers,
        )

    return patch


@pytest_asyncio.fixture
async def paid_check_in(make_check_in, patch_check_in):
    """An instant wash taken all the way to paid."""
    check_in = await make_check_in()
    for body in ({"status": "in_progress"}, {"status": "completed"}):
        response = await patch_check_in(check_in["id"], **body)
        assert response.status_code == 200, response.text
    response = await patch_check_in(check_in["id"], payment_status="paid", payment_method="cash")
    assert response.status_code == 200, response.text
    return response.json()
