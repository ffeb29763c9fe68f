"""
Database setup script - tables, reference data and a small sample catalog
"""
import asyncio

from sqlalchemy import select

from catalog.database import engine, Base, AsyncSessionLocal
from catalog.main import seed_reference_data
from catalog.models import Brand, Density, FoodCategory, Supplier


SAMPLE_CATEGORIES = ["Produce", "Dairy", "Dry goods", "Oils and fats"]
SAMPLE_BRANDS = ["Green Valley", "Hillside Dairy"]
SAMPLE_DENSITIES = [("Olive oil", 0.92), ("Whole milk", 1.03), ("Honey", 1.42)]


async def setup_database():
    """Create tables and seed initial data"""
    print("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("Tables created")

    async with AsyncSessionLocal() as session:
        await seed_reference_data(session)

        if (await session.execute(select(FoodCategory))).scalars().first() is None:
            categories = [FoodCategory(name=name) for name in SAMPLE_CATEGORIES]
            session.add_all(categories)
            session.add_all([Brand(name=name) for name in SAMPLE_BRANDS])
            session.add_all([Density(name=name, value=value) for name, value in SAMPLE_DENSITIES])

            head = Supplier(name="Fresh Farms", region="North", categories=categories[:1])
            head.branches = [
                Supplier(name="Fresh Farms East", region="East"),
                Supplier(name="Fresh Farms West", region="West"),
            ]
            session.add(head)
            await session.commit()
            print("Sample catalog data created")

    print("\nDatabase setup complete!")
    print("\nDefault login:")
    print("  Email: admin@catalog.local")
    print("  Password: admin123")


if __name__ == "__main__":
    asyncio.run(setup_database())
