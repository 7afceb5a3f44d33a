"""Create-vs-update reconciliation of a report document against the stored tables.

A save runs in one transaction: the auction row is inserted or updated, then
every sub-collection is replaced (delete all, insert the new set) and the market
insight is upserted. Any store failure rolls the whole save back.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from auction_reports.schemas.reports import AuctionReport
from auction_reports.services.derived_fields import apply_derived_fields
from auction_reports.services.errors import (
    AuctionNotFoundError,
    PublishGateError,
    ReportEngineError,
    ReportValidationError,
    StoreOperationError,
)
from auction_reports.services.name_resolver import apply_selections, load_snapshots
from auction_reports.services.report_decomposer import decompose_report
from auction_reports.services.report_recomposer import attach_previous_week
from auction_reports.services.report_validation import validate_report
from auction_reports.services.table_store import OperationResult, TableStore

logger = logging.getLogger("auction_reports.reconciliation")

# Replaced wholesale on every save of an existing auction.
REPLACED_TABLES = ("micron_prices", "buyer_performance", "broker_performance", "top_performers")


@dataclass(frozen=True)
class SaveOutcome:
    auction_id: str
    status: str
    created: bool
    published_at: Optional[datetime] = None
    warnings: tuple[str, ...] = ()


def _check(res: OperationResult, table: str) -> Any:
    if not res.success:
        raise StoreOperationError(table, res.error or "operation failed")
    return res.data


async def _load_auction(store: TableStore, auction_id: str) -> dict:
    row = _check(await store.select_one("auctions", filters={"id": auction_id}), "auctions")
    if row is None:
        raise AuctionNotFoundError(auction_id)
    return row


async def _sync_insight(
    store: TableStore,
    auction_id: str,
    insight: Optional[dict[str, Any]],
) -> None:
    existing = _check(
        await store.select_one("market_insights", filters={"auction_id": auction_id}),
        "market_insights",
    )

    if insight is None:
        if existing:
            _check(await store.delete("market_insights", filters={"id": existing["id"]}), "market_insights")
        _check(
            await store.update(
                "auctions",
                {"has_market_insights": False, "market_insights_id": None},
                filters={"id": auction_id},
            ),
            "auctions",
        )
        return

    if existing:
        _check(
            await store.update(
                "market_insights",
                {"market_insights_text": insight["market_insights_text"]},
                filters={"id": existing["id"]},
            ),
            "market_insights",
        )
        insight_id = existing["id"]
    else:
        inserted = _check(await store.insert("market_insights", insight), "market_insights")
        insight_id = inserted[0]["id"]

    _check(
        await store.update(
            "auctions",
            {"has_market_insights": True, "market_insights_id": insight_id},
            filters={"id": auction_id},
        ),
        "auctions",
    )


async def _reconcile(
    store: TableStore,
    report: AuctionReport,
    *,
    status: str,
    user_id: Optional[str],
    existing: Optional[dict],
    now: Optional[datetime] = None,
) -> SaveOutcome:
    doc = report.model_copy(deep=True)

    snapshots = await load_snapshots(store)
    try:
        await apply_selections(store, doc, snapshots, created_by=user_id)
    except ValueError as e:
        raise ReportValidationError({"buyers-brokers": [str(e)]}) from e

    await attach_previous_week(store, doc, snapshots)
    apply_derived_fields(doc)

    created = existing is None
    auction_id = existing["id"] if existing else str(uuid.uuid4())
    dec = decompose_report(doc, snapshots, auction_id=auction_id, user_id=user_id)

    published_at = existing.get("published_at") if existing else None
    if status == "published" and published_at is None:
        published_at = now or datetime.now(timezone.utc)

    values = dict(dec.auction, status=status, published_at=published_at)
    if created:
        values.update(id=auction_id, created_by=user_id)
        _check(await store.insert("auctions", values), "auctions")
    else:
        _check(await store.update("auctions", values, filters={"id": auction_id}), "auctions")

    for table in REPLACED_TABLES:
        rows = getattr(dec, table)
        if not created:
            _check(await store.delete(table, filters={"auction_id": auction_id}), table)
        if rows:
            _check(await store.insert(table, rows), table)

    await _sync_insight(store, auction_id, dec.market_insight)

    for w in dec.warnings:
        logger.info("save_warning", extra={"auction_id": auction_id, "warning": w})

    return SaveOutcome(
        auction_id=auction_id,
        status=status,
        created=created,
        published_at=published_at,
        warnings=dec.warnings,
    )


def _envelope(exc: ReportEngineError) -> OperationResult:
    return OperationResult.fail(exc.message, kind=exc.kind, details=exc.details)


async def save_draft(
    store: TableStore,
    report: AuctionReport,
    *,
    user_id: Optional[str] = None,
) -> OperationResult:
    """Persist a report as a draft without validation.

    New reports get a fresh auction; existing ones must still be drafts.
    """

    try:
        async with store.transaction():
            existing = None
            if report.auction.id:
                existing = await _load_auction(store, report.auction.id)
                if existing.get("status") != "draft":
                    raise PublishGateError(
                        f"Auction {existing['id']} is {existing.get('status')}; only drafts can be saved as draft"
                    )
            outcome = await _reconcile(store, report, status="draft", user_id=user_id, existing=existing)
    except ReportEngineError as e:
        logger.warning("save_draft_failed", extra={"error": e.message, "kind": e.kind})
        return _envelope(e)

    logger.info(
        "report_saved",
        extra={"auction_id": outcome.auction_id, "status": outcome.status, "is_new": outcome.created},
    )
    return OperationResult.ok(outcome)


async def publish_report(
    store: TableStore,
    report: AuctionReport,
    *,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> OperationResult:
    """Validate, then save with status `published`.

    The report must have been saved as a draft first. `published_at` is set on
    the first publish only.
    """

    errors = validate_report(report)
    if errors:
        return _envelope(ReportValidationError(errors))

    try:
        async with store.transaction():
            if not report.auction.id:
                raise PublishGateError("Save the report as a draft before publishing")
            existing = _check(
                await store.select_one("auctions", filters={"id": report.auction.id}), "auctions"
            )
            if existing is None:
                raise PublishGateError(
                    f"Auction {report.auction.id} has not been saved as a draft yet"
                )
            if existing.get("status") not in {"draft", "published"}:
                raise PublishGateError(f"Auction {existing['id']} is {existing.get('status')}")
            outcome = await _reconcile(
                store, report, status="published", user_id=user_id, existing=existing, now=now
            )
    except ReportEngineError as e:
        logger.warning("publish_failed", extra={"error": e.message, "kind": e.kind})
        return _envelope(e)

    logger.info("report_published", extra={"auction_id": outcome.auction_id})
    return OperationResult.ok(outcome)


async def archive_auction(store: TableStore, auction_id: str) -> OperationResult:
    try:
        async with store.transaction():
            await _load_auction(store, auction_id)
            rows = _check(
                await store.update("auctions", {"status": "archived"}, filters={"id": auction_id}),
                "auctions",
            )
    except ReportEngineError as e:
        return _envelope(e)

    logger.info("auction_archived", extra={"auction_id": auction_id})
    return OperationResult.ok(rows[0])
