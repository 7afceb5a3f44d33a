import asyncio
import os
import tempfile
from datetime import date

# CRITICAL: Set environment variables BEFORE any auction_reports imports
# These must be set before auction_reports.config.settings is loaded
_TEST_DB_PATH = os.path.join(tempfile.gettempdir(), "test_auction_reports.db")
os.environ["SECRET_KEY"] = "test-secret-key-1234567890"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_PATH}"
os.environ["ENVIRONMENT"] = "test"
os.environ["API_V1_STR"] = "/api"  # Ensure /api prefix is used in tests
os.environ["NAME_MATCH_MODE"] = "normalized"

import pytest

from auction_reports.database import Base, SessionLocal, engine
from auction_reports.main import app
from auction_reports.schemas.reports import (
    AuctionHeader,
    AuctionReport,
    BrokerRow,
    BuyerRow,
    CurrencyFx,
    GreasyStats,
    MarketIndices,
    MicronPriceRow,
    ProvincialGroup,
    ProvincialProducer,
    SupplyStats,
)
from auction_reports.services.reference_seed import seed_reference_data
from auction_reports.services.table_store import TableStore


async def _recreate_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _drop_schema() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function", autouse=True)
def setup_test_database():
    """
    Create all tables before each test and drop them after, so every test
    starts from an empty database. Dependency overrides set by a test are
    removed afterwards.
    """
    original_overrides = dict(app.dependency_overrides)

    asyncio.run(_recreate_schema())

    yield

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original_overrides)

    asyncio.run(_drop_schema())


@pytest.fixture
def run_store():
    """Run `fn(store)` in a fresh session on its own event loop and return its result."""

    def _run(fn):
        async def _go():
            async with SessionLocal() as db:
                return await fn(TableStore(db))

        return asyncio.run(_go())

    return _run


@pytest.fixture
def reference_ids(run_store):
    """Seed reference data plus one season and return the ids tests need."""

    async def _seed(store: TableStore):
        await seed_reference_data(store)
        async with store.transaction():
            season = (
                await store.insert(
                    "seasons",
                    {"season_year": "2025/26", "start_date": date(2025, 8, 1), "end_date": date(2026, 6, 30)},
                )
            ).data[0]
        wool = (await store.select_one("commodity_types", filters={"name": "wool"})).data
        provinces = (await store.select("provinces")).data
        buyers = (await store.select("buyers")).data
        brokers = (await store.select("brokers")).data
        return {
            "season_id": season["id"],
            "commodity_type_id": wool["id"],
            "provinces": {p["name"]: p["id"] for p in provinces},
            "buyers": {b["buyer_name"]: b["id"] for b in buyers},
            "brokers": {b["name"]: b["id"] for b in brokers},
        }

    return run_store(_seed)


@pytest.fixture
def make_report(reference_ids):
    """Build a complete, publishable report for the seeded season."""

    def _make(**overrides) -> AuctionReport:
        report = AuctionReport(
            auction=AuctionHeader(
                season_id=reference_ids["season_id"],
                commodity_type_id=reference_ids["commodity_type_id"],
                auction_date=date(2025, 9, 3),
                catalogue_name="CG01",
            ),
            market_indices=MarketIndices(
                merino_indicator_sa_cents_clean=18500,
                certified_indicator_sa_cents_clean=19000,
                awex_emi_sa_cents_clean=1200,
            ),
            currency_fx=CurrencyFx(zar_usd=17.5, zar_eur=20.5, zar_jpy=0.12, zar_gbp=23.9, usd_aud=0.66),
            supply_stats=SupplyStats(offered_bales=6507, sold_bales=6084),
            greasy_stats=GreasyStats(turnover_rand=95_000_000, bales=6084, mass_kg=1_020_000),
            micron_prices=[
                MicronPriceRow(micron=18.0, non_cert_clean_zar_per_kg=190, cert_clean_zar_per_kg=200),
                MicronPriceRow(micron=19.0, non_cert_clean_zar_per_kg=150, cert_clean_zar_per_kg=165),
            ],
            buyers=[
                BuyerRow(buyer="Standard Wool", cat=3000, bales_ytd=3000),
                BuyerRow(buyer="Tianyu Wool", cat=1000, bales_ytd=1000),
            ],
            brokers=[
                BrokerRow(name="OVK", catalogue_offering=1000, withdrawn_before_sale=50, not_sold=100),
            ],
            provincial_producers=[
                ProvincialGroup(
                    province="Eastern Cape",
                    producers=[
                        ProvincialProducer(
                            position=1,
                            name="Smith Farming",
                            district="Graaff-Reinet",
                            no_bales=12,
                            micron=18.5,
                            price=210.0,
                            certified="RWS",
                            buyer_name="Standard Wool",
                        ),
                        ProvincialProducer(position=2, name="Botha Trust", district="Cradock", price=205.0),
                    ],
                )
            ],
            insights="Firm market on finer microns.",
        )
        return report.model_copy(update=overrides)

    return _make
