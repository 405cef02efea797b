import asyncio
from classcast.models.database import init_db


async def create_tables():
    """Create all database tables"""
    print("Creating database tables...")
    print("Tables to create:")
    print("  - broadcast_sessions")
    print("  - broadcast_captions")

    await init_db()

    print("✅ All tables created successfully!")
    print("\nDatabase schema ready for ClassCast")


if __name__ == "__main__":
    asyncio.run(create_tables())
