from __future__ import annotations

import logging
from collections import OrderedDict
from datetime import date
from typing import Any, Optional

from auction_reports.schemas.reports import (
    AuctionHeader,
    AuctionReport,
    BrokerRow,
    BrokerSnapshot,
    BuyerRow,
    CertifiedShare,
    CurrencyFx,
    ExistingSelection,
    GreasyStats,
    HighestPrice,
    MarketIndices,
    MicronPriceRow,
    ProvincialGroup,
    ProvincialProducer,
    SupplyStats,
)
from auction_reports.services.derived_fields import apply_derived_fields
from auction_reports.services.errors import AuctionNotFoundError, StoreOperationError
from auction_reports.services.name_resolver import (
    RECOGNIZED_CERTIFICATION,
    ReferenceSnapshots,
    load_snapshots,
    resolve_row_reference,
)
from auction_reports.services.report_decomposer import compose_catalogue_name
from auction_reports.services.table_store import TableStore

logger = logging.getLogger("auction_reports.report_recomposer")

UNKNOWN_PROVINCE = "Unknown"


def _n(value: Any, default: Any = 0) -> Any:
    return default if value is None else value


async def _select(store: TableStore, table: str, **kwargs) -> list[dict]:
    res = await store.select(table, **kwargs)
    if not res.success:
        raise StoreOperationError(table, res.error or "select failed")
    return res.data


async def previous_auction(
    store: TableStore,
    *,
    season_id: Optional[str],
    auction_date: Optional[date],
    exclude_id: Optional[str] = None,
    published_only: bool = False,
) -> Optional[dict]:
    """Latest auction of the same season dated strictly before `auction_date`."""

    if not season_id or auction_date is None:
        return None
    filters: dict[str, Any] = {"season_id": season_id, "auction_date__lt": auction_date}
    if exclude_id:
        filters["id__ne"] = exclude_id
    if published_only:
        filters["status"] = "published"
    rows = await _select(store, "auctions", filters=filters, order_by=["-auction_date"], limit=1)
    return rows[0] if rows else None


async def previous_broker_snapshots(
    store: TableStore,
    *,
    season_id: Optional[str],
    auction_date: Optional[date],
    exclude_id: Optional[str] = None,
) -> dict[str, BrokerSnapshot]:
    prev = await previous_auction(
        store, season_id=season_id, auction_date=auction_date, exclude_id=exclude_id
    )
    if not prev:
        return {}
    rows = await _select(
        store, "broker_performance", filters={"auction_id": prev["id"], "broker_id__is_null": False}
    )
    return {str(r["broker_id"]): BrokerSnapshot.model_validate(r) for r in rows}


async def attach_previous_week(
    store: TableStore,
    report: AuctionReport,
    snapshots: ReferenceSnapshots,
) -> None:
    """Set each broker row's `previous_week` from the prior auction of the season."""

    by_broker = await previous_broker_snapshots(
        store,
        season_id=report.auction.season_id,
        auction_date=report.auction.auction_date,
        exclude_id=report.auction.id,
    )
    for row in report.brokers:
        broker_id = resolve_row_reference(snapshots.brokers, row.name, row.selection)
        row.previous_week = by_broker.get(broker_id) if broker_id else None


def _header(auction: dict, season: Optional[dict], commodity: Optional[dict]) -> AuctionHeader:
    commodity_name = str((commodity or {}).get("name") or "wool").strip().lower()
    return AuctionHeader(
        id=auction["id"],
        commodity="mohair" if commodity_name == "mohair" else "wool",
        season_id=auction.get("season_id"),
        season_label=(season or {}).get("season_year"),
        commodity_type_id=auction.get("commodity_type_id"),
        week_start=auction.get("week_start"),
        week_end=auction.get("week_end"),
        auction_date=auction.get("auction_date"),
        catalogue_name=compose_catalogue_name(auction.get("catalogue_prefix"), auction.get("catalogue_number")),
        catalogue_prefix=auction.get("catalogue_prefix"),
        catalogue_number=auction.get("catalogue_number"),
    )


def _scalar_sections(a: dict) -> dict[str, Any]:
    return {
        "market_indices": MarketIndices(
            merino_indicator_sa_cents_clean=_n(a.get("all_merino_sa_c_kg_clean")),
            merino_indicator_us_cents_clean=_n(a.get("all_merino_us_c_kg_clean")),
            merino_indicator_euro_cents_clean=_n(a.get("all_merino_euro_c_kg_clean")),
            certified_indicator_sa_cents_clean=_n(a.get("certified_sa_c_kg_clean")),
            certified_indicator_us_cents_clean=_n(a.get("certified_us_c_kg_clean")),
            certified_indicator_euro_cents_clean=_n(a.get("certified_euro_c_kg_clean")),
            awex_emi_sa_cents_clean=_n(a.get("exchange_rates_sa_c_kg_clean_awex_emi")),
            currency_autofilled=bool(a.get("currency_autofilled")),
        ),
        "currency_fx": CurrencyFx(
            zar_usd=_n(a.get("exchange_rates_zar_usd")),
            zar_eur=_n(a.get("exchange_rates_zar_eur")),
            zar_jpy=_n(a.get("exchange_rates_zar_jpy")),
            zar_gbp=_n(a.get("exchange_rates_zar_gbp")),
            usd_aud=_n(a.get("exchange_rates_usd_aud")),
        ),
        "supply_stats": SupplyStats(
            offered_bales=_n(a.get("supply_statistics_bales_offered")),
            sold_bales=_n(a.get("supply_statistics_sold_bales")),
            clearance_rate_pct=_n(a.get("supply_statistics_clearance_rate")),
        ),
        "highest_price": HighestPrice(
            price_cents_clean=_n(a.get("highest_price_price_cents_clean")),
            micron=_n(a.get("highest_price_micron")),
            bales=_n(a.get("highest_price_bales")),
        ),
        "certified_share": CertifiedShare(
            offered_bales=_n(a.get("certified_offered_bales")),
            sold_bales=_n(a.get("certified_sold_bales")),
            all_wool_pct_offered=_n(a.get("certified_all_wool_pct_offered")),
            all_wool_pct_sold=_n(a.get("certified_all_wool_pct_sold")),
            merino_pct_offered=_n(a.get("certified_merino_pct_offered")),
            merino_pct_sold=_n(a.get("certified_merino_pct_sold")),
        ),
        "greasy_stats": GreasyStats(
            turnover_rand=_n(a.get("greasy_statistics_turnover")),
            bales=_n(a.get("greasy_statistics_bales")),
            mass_kg=_n(a.get("greasy_statistics_mass")),
        ),
    }


def group_top_performers(
    rows: list[dict],
    snapshots: ReferenceSnapshots,
) -> list[ProvincialGroup]:
    """Regroup flat top-performer rows into report groups.

    Rows group by their stored group index and province, in group order and
    then by position. The label is the reference name when the province
    resolves, else the stored name, else "Unknown".
    """

    rws_id = snapshots.certifications.resolve(RECOGNIZED_CERTIFICATION)
    groups: "OrderedDict[tuple, ProvincialGroup]" = OrderedDict()
    ordered = sorted(
        rows,
        key=lambda r: (_n(r.get("group_order"), 0), _n(r.get("position"), 0), str(r.get("id"))),
    )
    for r in ordered:
        province_id = r.get("province_id")
        stored_name = r.get("province_name")
        key = (_n(r.get("group_order"), 0), province_id, stored_name)
        group = groups.get(key)
        if group is None:
            province = snapshots.provinces.name_for(province_id) or stored_name or UNKNOWN_PROVINCE
            group = ProvincialGroup(province=province, province_id=province_id if province_id else None)
            groups[key] = group
        group.producers.append(
            ProvincialProducer(
                position=_n(r.get("position"), 1),
                name=r.get("name") or "",
                district=r.get("district"),
                producer_number=r.get("producer_number"),
                no_bales=r.get("no_bales"),
                price=r.get("price"),
                description=r.get("description"),
                micron=r.get("micron"),
                certified="RWS" if rws_id and r.get("certification_id") == rws_id else "",
                buyer_name=r.get("buyer_name"),
            )
        )
    return list(groups.values())


async def recompose_report(
    store: TableStore,
    auction_id: str,
    *,
    snapshots: Optional[ReferenceSnapshots] = None,
) -> AuctionReport:
    """Rebuild the report document for one stored auction.

    Sub-collections whose `has_*` flag is false come back empty without a read.
    """

    rows = await _select(store, "auctions", filters={"id": auction_id}, limit=1)
    if not rows:
        raise AuctionNotFoundError(auction_id)
    a = rows[0]

    if snapshots is None:
        snapshots = await load_snapshots(store)

    season = None
    if a.get("season_id"):
        found = await _select(store, "seasons", filters={"id": a["season_id"]}, limit=1)
        season = found[0] if found else None
    commodity = None
    if a.get("commodity_type_id"):
        found = await _select(store, "commodity_types", filters={"id": a["commodity_type_id"]}, limit=1)
        commodity = found[0] if found else None

    micron_prices: list[MicronPriceRow] = []
    if a.get("has_micron_prices"):
        for r in await _select(store, "micron_prices", filters={"auction_id": auction_id}, order_by="micron"):
            micron_prices.append(MicronPriceRow.model_validate(r))

    buyers: list[BuyerRow] = []
    if a.get("has_buyer_data"):
        for r in await _select(
            store, "buyer_performance", filters={"auction_id": auction_id}, order_by="sort_order"
        ):
            buyer_id = r.get("buyer_id")
            buyers.append(
                BuyerRow(
                    buyer=snapshots.buyers.name_for(buyer_id),
                    selection=ExistingSelection(id=buyer_id) if buyer_id else None,
                    cat=_n(r.get("cat")),
                    share_pct=_n(r.get("share_pct")),
                    bales_ytd=_n(r.get("bales_ytd")),
                )
            )

    brokers: list[BrokerRow] = []
    if a.get("has_broker_data"):
        previous = await previous_broker_snapshots(
            store, season_id=a.get("season_id"), auction_date=a.get("auction_date"), exclude_id=auction_id
        )
        for r in await _select(
            store, "broker_performance", filters={"auction_id": auction_id}, order_by="sort_order"
        ):
            broker_id = r.get("broker_id")
            row = BrokerRow.model_validate(
                {
                    **{k: v for k, v in r.items() if k in BrokerSnapshot.model_fields},
                    "sold_overridden": bool(r.get("sold_overridden")),
                }
            )
            row.name = snapshots.brokers.name_for(broker_id)
            row.selection = ExistingSelection(id=broker_id) if broker_id else None
            row.previous_week = previous.get(broker_id) if broker_id else None
            brokers.append(row)

    provincial: list[ProvincialGroup] = []
    if a.get("has_provincial_data"):
        provincial = group_top_performers(
            await _select(store, "top_performers", filters={"auction_id": auction_id}),
            snapshots,
        )

    insights = ""
    if a.get("has_market_insights"):
        found = await _select(store, "market_insights", filters={"auction_id": auction_id}, limit=1)
        if found:
            insights = found[0].get("market_insights_text") or ""

    report = AuctionReport(
        auction=_header(a, season, commodity),
        micron_prices=micron_prices,
        buyers=buyers,
        brokers=brokers,
        provincial_producers=provincial,
        insights=insights,
        status=a.get("status") or "draft",
        **_scalar_sections(a),
    )
    logger.debug("report_recomposed", extra={"auction_id": auction_id})
    return apply_derived_fields(report)
