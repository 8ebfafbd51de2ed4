"""
Main FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from carwash.auth import hash_password
from carwash.config import get_settings
from carwash.database import AsyncSessionLocal, init_db
from carwash.errors import register_error_handlers
from carwash.logging_setup import setup_logging
from carwash.models.user import AdminProfile, User, UserRole
from carwash.routers import (
    admins, auth, bonuses, check_ins, customers, expenses, inventory, locations, milestones,
    payment_requests, reports, sales, services, tools, washers, worker,
)

settings = get_settings()
logger = logging.getLogger(__name__)


async def seed_super_admin(session_factory=AsyncSessionLocal) -> None:
    """Create the first super admin when the users table has none."""
    async with session_factory() as session:
        existing = await session.execute(select(User.id).where(User.role == UserRole.SUPER_ADMIN))
        if existing.first():
            return
        user = User(
            name="Super Admin",
            email=settings.first_superadmin_email.lower(),
            hashed_password=hash_password(settings.first_superadmin_password),
            role=UserRole.SUPER_ADMIN,
        )
        user.admin_profile = AdminProfile()
        session.add(user)
        await session.commit()
        logger.warning("Seeded super admin %s; change its password", user.email)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan events for the application.
    Handles startup and shutdown events.
    """
    # Startup
    setup_logging(settings.log_level)
    logger.info("Starting %s %s", settings.app_name, settings.app_version)
    await init_db()
    logger.info("Database initialized")
    await seed_super_admin()
    logger.info("API available at %s", settings.api_prefix)

    yield

    # Shutdown
    logger.info("Shutting down %s", settings.app_name)


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    ## Car Wash Management System API

    Back office for a car wash business.

    ### Entities:
    * **Check-ins**: Cars in the wash queue, from intake to payment
    * **Washers**: Staff, their tools, materials and earnings
    * **Customers**: Customers, vehicles and loyalty milestones
    * **Finance**: Bonuses, expenses, payment requests and reports
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include routers
for module in (
    auth, admins, washers, locations, customers, services, check_ins, tools, inventory, sales,
    bonuses, expenses, payment_requests, milestones, reports, worker,
):
    app.include_router(module.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name} API",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.app_version,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "carwash.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
