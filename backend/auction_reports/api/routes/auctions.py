from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from auction_reports.api.deps import CurrentUser, admin_access, get_store, read_access, write_access
from auction_reports.api.envelopes import unwrap
from auction_reports.schemas import (
    ArchiveResult,
    AuctionListItem,
    DeleteResult,
    DeletionPreflightRead,
    MarketSummary,
)
from auction_reports.schemas.reports import ReportStatus
from auction_reports.services.auction_deletion import delete_auction_cascade, deletion_preflight
from auction_reports.services.market_summary import build_market_summary
from auction_reports.services.report_decomposer import compose_catalogue_name
from auction_reports.services.report_reconciliation import archive_auction
from auction_reports.services.table_store import TableStore

router = APIRouter(prefix="/auctions", tags=["auctions"])

_STORE_DEP = Depends(get_store)


@router.get("", response_model=List[AuctionListItem])
async def list_auctions(
    season_id: Optional[str] = Query(None),
    status: Optional[ReportStatus] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    store: TableStore = _STORE_DEP,
    current_user: CurrentUser = Depends(read_access),
):
    filters = {}
    if season_id:
        filters["season_id"] = season_id
    if status:
        filters["status"] = status
    rows = unwrap(
        await store.select("auctions", filters=filters, order_by=["-auction_date"], limit=limit)
    )
    return [
        AuctionListItem.model_validate(
            {
                **r,
                "catalogue_name": compose_catalogue_name(r.get("catalogue_prefix"), r.get("catalogue_number")),
            }
        )
        for r in rows
    ]


@router.get("/{auction_id}/deletion-preflight", response_model=DeletionPreflightRead)
async def get_deletion_preflight(
    auction_id: str,
    store: TableStore = _STORE_DEP,
    current_user: CurrentUser = Depends(admin_access),
):
    pre = unwrap(await deletion_preflight(store, auction_id))
    return DeletionPreflightRead(
        auction_id=pre.auction_id,
        catalogue_name=pre.catalogue_name,
        auction_date=pre.auction_date,
        status=pre.status,
        counts=pre.counts,
        total_related_records=pre.total_related_records,
    )


@router.delete("/{auction_id}", response_model=DeleteResult)
async def delete_auction(
    auction_id: str,
    store: TableStore = _STORE_DEP,
    current_user: CurrentUser = Depends(admin_access),
):
    return DeleteResult.model_validate(unwrap(await delete_auction_cascade(store, auction_id)))


@router.post("/{auction_id}/archive", response_model=ArchiveResult)
async def archive(
    auction_id: str,
    store: TableStore = _STORE_DEP,
    current_user: CurrentUser = Depends(write_access),
):
    row = unwrap(await archive_auction(store, auction_id))
    return ArchiveResult(auction_id=row["id"], status=row["status"])


@router.get("/{auction_id}/market-summary", response_model=MarketSummary)
async def get_market_summary(
    auction_id: str,
    store: TableStore = _STORE_DEP,
    current_user: CurrentUser = Depends(read_access),
):
    return unwrap(await build_market_summary(store, auction_id))
