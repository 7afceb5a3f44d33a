from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from auction_reports.services.errors import AuctionNotFoundError, ReportEngineError, StoreOperationError
from auction_reports.services.report_decomposer import compose_catalogue_name
from auction_reports.services.table_store import OperationResult, TableStore

logger = logging.getLogger("auction_reports.auction_deletion")

# Children first; auctions is deleted last.
DEPENDENT_TABLES = (
    "market_insights",
    "top_performers",
    "broker_performance",
    "buyer_performance",
    "micron_prices",
)


@dataclass(frozen=True)
class DeletionPreflight:
    auction_id: str
    catalogue_name: str
    auction_date: Optional[date]
    status: str
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def total_related_records(self) -> int:
        return sum(self.counts.values())


async def _auction_or_raise(store: TableStore, auction_id: str) -> dict:
    res = await store.select_one("auctions", filters={"id": auction_id})
    if not res.success:
        raise StoreOperationError("auctions", res.error or "select failed")
    if res.data is None:
        raise AuctionNotFoundError(auction_id)
    return res.data


async def _preflight(store: TableStore, auction_id: str) -> DeletionPreflight:
    a = await _auction_or_raise(store, auction_id)
    counts: dict[str, int] = {}
    for table in DEPENDENT_TABLES:
        res = await store.count(table, filters={"auction_id": auction_id})
        if not res.success:
            raise StoreOperationError(table, res.error or "count failed")
        counts[table] = res.data
    return DeletionPreflight(
        auction_id=auction_id,
        catalogue_name=compose_catalogue_name(a.get("catalogue_prefix"), a.get("catalogue_number")),
        auction_date=a.get("auction_date"),
        status=a.get("status") or "draft",
        counts=counts,
    )


async def deletion_preflight(store: TableStore, auction_id: str) -> OperationResult:
    """What a cascade delete of `auction_id` would remove, per dependent table."""

    try:
        return OperationResult.ok(await _preflight(store, auction_id))
    except ReportEngineError as e:
        return OperationResult.fail(e.message, kind=e.kind, details=e.details)


async def delete_auction_cascade(store: TableStore, auction_id: str) -> OperationResult:
    """Delete an auction and all of its dependent rows in one transaction.

    Any failing step rolls everything back and the auction stays intact; the
    error names the table that failed.
    """

    try:
        async with store.transaction():
            pre = await _preflight(store, auction_id)

            res = await store.update(
                "auctions",
                {"market_insights_id": None, "has_market_insights": False},
                filters={"id": auction_id},
            )
            if not res.success:
                raise StoreOperationError("auctions", f"failed to clear insight reference: {res.error}")

            deleted: dict[str, int] = {}
            for table in DEPENDENT_TABLES:
                res = await store.delete(table, filters={"auction_id": auction_id})
                if not res.success:
                    raise StoreOperationError(table, f"failed to delete {table}: {res.error}")
                deleted[table] = res.data

            res = await store.delete("auctions", filters={"id": auction_id})
            if not res.success:
                raise StoreOperationError("auctions", f"failed to delete auction: {res.error}")
            deleted["auctions"] = res.data
    except ReportEngineError as e:
        logger.error(
            "auction_delete_failed",
            extra={"auction_id": auction_id, "error": e.message, "kind": e.kind},
        )
        return OperationResult.fail(e.message, kind=e.kind, details=e.details)

    logger.info(
        "auction_deleted",
        extra={"auction_id": auction_id, "deleted": deleted, "expected": pre.total_related_records},
    )
    return OperationResult.ok({"auction_id": auction_id, "deleted": deleted})
