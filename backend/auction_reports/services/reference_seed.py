"""Idempotent seeding of the reference tables a fresh database needs."""

from __future__ import annotations

import logging

from auction_reports.services.errors import StoreOperationError
from auction_reports.services.name_resolver import RECOGNIZED_CERTIFICATION
from auction_reports.services.producer_import import PROVINCES
from auction_reports.services.table_store import TableStore

logger = logging.getLogger("auction_reports.reference_seed")

PROVINCE_ABBREVIATIONS = {
    "Eastern Cape": "EC",
    "Free State": "FS",
    "Western Cape": "WC",
    "Northern Cape": "NC",
    "KwaZulu-Natal": "KZN",
    "Mpumalanga": "MP",
    "Gauteng": "GP",
    "Limpopo": "LP",
    "North West": "NW",
}

COMMODITY_TYPES = ("wool", "mohair")

DEFAULT_BUYERS = (
    "BKB Pinnacle Fibres",
    "G Modiano SA",
    "Lempriere (Pty) Ltd",
    "Modiano SA",
    "Ovk Wool",
    "Standard Wool",
    "Tianyu Wool",
    "Viterra Wool",
)
DEFAULT_BROKERS = ("BKB", "OVK", "JLW", "MAS", "QWB", "VLB")


async def _ensure_rows(store: TableStore, table: str, column: str, rows: list[dict]) -> int:
    res = await store.select(table, columns=[column])
    if not res.success:
        raise StoreOperationError(table, res.error or "select failed")
    present = {r[column] for r in res.data}
    missing = [r for r in rows if r[column] not in present]
    if missing:
        res = await store.insert(table, missing)
        if not res.success:
            raise StoreOperationError(table, res.error or "insert failed")
    return len(missing)


async def seed_reference_data(store: TableStore, *, include_participants: bool = True) -> dict[str, int]:
    """Insert whatever reference rows are missing; returns inserted counts per table."""

    inserted: dict[str, int] = {}
    async with store.transaction():
        inserted["provinces"] = await _ensure_rows(
            store,
            "provinces",
            "name",
            [{"name": p, "abbreviation": PROVINCE_ABBREVIATIONS.get(p)} for p in PROVINCES],
        )
        inserted["certifications"] = await _ensure_rows(
            store,
            "certifications",
            "code",
            [{"code": RECOGNIZED_CERTIFICATION, "name": "Responsible Wool Standard"}],
        )
        inserted["commodity_types"] = await _ensure_rows(
            store, "commodity_types", "name", [{"name": c} for c in COMMODITY_TYPES]
        )
        if include_participants:
            inserted["buyers"] = await _ensure_rows(
                store, "buyers", "buyer_name", [{"buyer_name": b, "created_by": "seed"} for b in DEFAULT_BUYERS]
            )
            inserted["brokers"] = await _ensure_rows(
                store, "brokers", "name", [{"name": b, "created_by": "seed"} for b in DEFAULT_BROKERS]
            )

    logger.info("reference_data_seeded", extra={"inserted": inserted})
    return inserted
