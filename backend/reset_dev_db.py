#!/usr/bin/env python3
"""
Reset development database - creates fresh schema and seeds reference data.
Run from the backend/ directory.
"""
import asyncio
import os
from pathlib import Path

# Ensure we're in the backend directory
backend_dir = Path(__file__).parent
os.chdir(backend_dir)

# Force load .env before importing app modules
from dotenv import load_dotenv

load_dotenv(backend_dir / ".env", override=True)

# Always target the local sqlite dev DB for this script.
os.environ["DATABASE_URL"] = "sqlite:///./dev.db"

from auction_reports.database import Base, SessionLocal, engine  # noqa: E402
from auction_reports.services.reference_seed import seed_reference_data  # noqa: E402
from auction_reports.services.table_store import TableStore  # noqa: E402


async def _reset() -> dict[str, int]:
    # Create all tables (SQLAlchemy) to match current ORM models.
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with SessionLocal() as db:
        inserted = await seed_reference_data(TableStore(db))
    await engine.dispose()
    return inserted


def main():
    db_path = backend_dir / "dev.db"

    if db_path.exists():
        print(f"Removing existing database: {db_path}")
        db_path.unlink()

    print("Creating database tables and reference data...")
    inserted = asyncio.run(_reset())
    for table, n in inserted.items():
        print(f"  {table}: {n}")

    print("\nDevelopment database reset complete.")
    print(f"   Database: {db_path}")
    print("   Issue a token with: python scripts/issue_token.py you@example.com --role admin")


if __name__ == "__main__":
    main()
