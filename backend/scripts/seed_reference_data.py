from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure "auction_reports" is importable when running as a script (python scripts/seed_reference_data.py)
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from auction_reports.database import SessionLocal, engine
from auction_reports.services.reference_seed import seed_reference_data
from auction_reports.services.table_store import TableStore


async def _run(include_participants: bool) -> dict[str, int]:
    try:
        async with SessionLocal() as db:
            return await seed_reference_data(TableStore(db), include_participants=include_participants)
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed provinces, certifications, commodity types and participants.")
    parser.add_argument(
        "--no-participants",
        action="store_true",
        help="Skip the default buyer and broker lists",
    )
    args = parser.parse_args()

    inserted = asyncio.run(_run(include_participants=not args.no_participants))

    print("Seed reference data OK:")
    for table, n in inserted.items():
        print(f"- {table}: {n} inserted")


if __name__ == "__main__":
    main()
