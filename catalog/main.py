"""
Main FastAPI application
"""
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import select

from catalog.config import get_settings
from catalog.database import engine, Base, AsyncSessionLocal
from catalog.models import User, Diet, SeasonStatus
from catalog.api.auth import get_password_hash
from catalog.api import auth, products
from catalog.services.events import event_bus
from catalog.services.listeners import register_default_listeners

settings = get_settings()
logger = logging.getLogger(__name__)

logging.basicConfig(
    stream=sys.stdout,
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

register_default_listeners(event_bus)

DEFAULT_DIETS = ["Vegan", "Vegetarian", "Gluten free", "Dairy free", settings.NUTS_DIET_NAME]

DEFAULT_SEASON_STATUSES = [
    ("Plentiful local supply", "active-status"),
    ("Limited local supply", "limited-status"),
    ("Imported", "imported-status"),
    ("Out of season", "inactive-status"),
]


async def seed_reference_data(session) -> None:
    """Insert diets, season statuses and an admin user when missing"""
    existing = set((await session.execute(select(Diet.name))).scalars().all())
    for name in DEFAULT_DIETS:
        if name not in existing:
            session.add(Diet(name=name))
            logger.info(f"Created diet '{name}'")

    result = await session.execute(select(SeasonStatus))
    if not result.scalars().first():
        for status, icon_class in DEFAULT_SEASON_STATUSES:
            session.add(SeasonStatus(status=status, icon_class=icon_class))
        logger.info("Created default season statuses")

    result = await session.execute(select(User).where(User.email == "admin@catalog.local"))
    if not result.scalar_one_or_none():
        session.add(User(
            email="admin@catalog.local",
            full_name="Catalog Admin",
            hashed_password=get_password_hash("admin123"),
            is_admin=True,
            permissions=["product_store", "product_destroy"],
        ))
        logger.info("Created default admin user")

    await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

    async with AsyncSessionLocal() as session:
        await seed_reference_data(session)

    yield

    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "catalog.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
