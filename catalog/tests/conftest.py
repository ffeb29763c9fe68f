"""
Test fixtures - in-memory SQLite database + authenticated HTTP clients
"""
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from catalog.database import Base, get_db, get_session_factory, enable_sqlite_foreign_keys
from catalog.main import app
from catalog.api.auth import get_password_hash, create_access_token
from catalog.models import (
    User, Supplier, Brand, FoodCategory, Density, Nutrition, Diet, SeasonStatus,
)


@pytest_asyncio.fixture()
async def engine():
    # One shared connection so listener sessions see the same in-memory database
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """Create a fresh in-memory SQLite database for each test"""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def seed_data(db_session):
    """Reference data plus three users: root admin, supplier staff, plain user"""
    fresh_farms = Supplier(name="Fresh Farms", region="North")
    nutty_co = Supplier(name="Nutty Co", region="South")
    produce = FoodCategory(name="Produce")
    pantry = FoodCategory(name="Pantry")
    db_session.add_all([fresh_farms, nutty_co, produce, pantry])
    await db_session.flush()

    admin = User(
        email="admin@test.com",
        full_name="Admin User",
        hashed_password=get_password_hash("testpass123"),
        is_admin=True,
        permissions=["product_store", "product_destroy"],
    )
    supplier_user = User(
        email="staff@freshfarms.com",
        full_name="Fresh Farms Staff",
        hashed_password=get_password_hash("testpass123"),
        supplier_id=fresh_farms.id,
    )
    plain_user = User(
        email="viewer@test.com",
        full_name="Viewer",
        hashed_password=get_password_hash("testpass123"),
    )

    brand = Brand(name="Green Valley")
    oil_density = Density(name="Olive oil", value=0.92)
    nutrition = Nutrition(
        name="Almond", energy_kcal=579, fat=49.9, saturates=3.8, carbohydrate=21.6,
        sugars=4.4, fibre=12.5, protein=21.2, salt=0.0,
    )
    vegan = Diet(name="Vegan")
    nuts = Diet(name="Contains nuts")
    plentiful = SeasonStatus(status="Plentiful local supply", icon_class="active-status")
    limited = SeasonStatus(status="Limited local supply", icon_class="limited-status")

    db_session.add_all([
        admin, supplier_user, plain_user, brand, oil_density, nutrition, vegan, nuts, plentiful, limited,
    ])
    await db_session.commit()

    return {
        "admin": admin,
        "supplier_user": supplier_user,
        "plain_user": plain_user,
        "fresh_farms": fresh_farms,
        "nutty_co": nutty_co,
        "produce": produce,
        "pantry": pantry,
        "brand": brand,
        "oil_density": oil_density,
        "nutrition": nutrition,
        "vegan": vegan,
        "nuts": nuts,
        "plentiful": plentiful,
        "limited": limited,
    }


def _override(db_session, session_factory):
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory


@pytest_asyncio.fixture()
async def client_for(db_session, session_factory, seed_data):
    """Factory: authenticated httpx AsyncClient for a given user"""
    _override(db_session, session_factory)
    clients = []

    async def make(user):
        token = create_access_token(data={"sub": user.email})
        transport = ASGITransport(app=app)
        ac = AsyncClient(transport=transport, base_url="http://test", follow_redirects=True)
        ac.headers["Authorization"] = f"Bearer {token}"
        clients.append(ac)
        return ac

    yield make

    for ac in clients:
        await ac.aclose()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(client_for, seed_data):
    """Client authenticated as the root admin"""
    return await client_for(seed_data["admin"])


@pytest_asyncio.fixture()
async def unauth_client(db_session, session_factory):
    """Unauthenticated httpx AsyncClient"""
    _override(db_session, session_factory)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()
