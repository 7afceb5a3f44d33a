"""Read-side market figures for one auction, derived from published auctions of its season."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional

from auction_reports.schemas.market import (
    Benchmark,
    BuyerSeasonTotal,
    Currency,
    Indicator,
    MarketSummary,
    SeasonTrends,
    TrendPoint,
    YearlyAveragePrice,
)
from auction_reports.services.errors import AuctionNotFoundError, ReportEngineError, StoreOperationError
from auction_reports.services.name_resolver import load_snapshot
from auction_reports.services.report_recomposer import previous_auction
from auction_reports.services.table_store import OperationResult, TableStore

logger = logging.getLogger("auction_reports.market_summary")

_YEAR_RE = re.compile(r"(\d{4})")


def pct_change(current: float, previous: float) -> float:
    """Percent change to one decimal; 0 when there is nothing to compare against."""

    if not previous:
        return 0
    return round((current - previous) / previous * 100, 1)


def _f(row: Optional[dict], key: str) -> float:
    if not row:
        return 0.0
    v = row.get(key)
    return float(v) if v is not None else 0.0


def _rand(row: Optional[dict], key: str) -> float:
    # Indicator columns are stored as cents per kg.
    return _f(row, key) / 100


async def _select(store: TableStore, table: str, **kwargs) -> list[dict]:
    res = await store.select(table, **kwargs)
    if not res.success:
        raise StoreOperationError(table, res.error or "select failed")
    return res.data


async def published_season_auctions(store: TableStore, season_id: Optional[str]) -> list[dict]:
    if not season_id:
        return []
    return await _select(
        store,
        "auctions",
        filters={"season_id": season_id, "status": "published"},
        order_by=["auction_date"],
    )


def season_indicator_totals(auctions: Iterable[dict]) -> dict[str, float]:
    totals = {"total_bales": 0.0, "total_volume": 0.0, "total_value": 0.0}
    for a in auctions:
        totals["total_bales"] += _f(a, "supply_statistics_bales_offered")
        totals["total_volume"] += _f(a, "greasy_statistics_mass")
        totals["total_value"] += _f(a, "greasy_statistics_turnover")
    return totals


def calculate_indicators(
    auction: dict,
    previous: Optional[dict],
    season_totals: Optional[dict[str, float]] = None,
) -> list[Indicator]:
    lots = _f(auction, "supply_statistics_bales_offered")
    volume = _f(auction, "greasy_statistics_mass") / 1000
    value = _f(auction, "greasy_statistics_turnover") / 1_000_000
    avg_price = _rand(auction, "all_merino_sa_c_kg_clean")

    prev_lots = _f(previous, "supply_statistics_bales_offered")
    prev_volume = _f(previous, "greasy_statistics_mass") / 1000
    prev_value = _f(previous, "greasy_statistics_turnover") / 1_000_000
    prev_avg = _rand(previous, "all_merino_sa_c_kg_clean")

    if season_totals is not None:
        ytd_lots = season_totals["total_bales"]
        ytd_volume = season_totals["total_volume"] / 1000
        ytd_value = season_totals["total_value"] / 1_000_000
    else:
        ytd_lots, ytd_volume, ytd_value = lots, volume, value

    has_prev = previous is not None
    return [
        Indicator(
            type="total_lots",
            unit="bales",
            value=lots,
            value_ytd=ytd_lots,
            pct_change=pct_change(lots, prev_lots) if has_prev else 0,
        ),
        Indicator(
            type="total_volume",
            unit="MT",
            value=volume,
            value_ytd=ytd_volume,
            pct_change=pct_change(volume, prev_volume) if has_prev else 0,
        ),
        Indicator(
            type="avg_price",
            unit="ZAR/kg",
            value=avg_price,
            pct_change=pct_change(avg_price, prev_avg) if has_prev else 0,
        ),
        Indicator(
            type="total_value",
            unit="ZAR M",
            value=value,
            value_ytd=ytd_value,
            pct_change=pct_change(value, prev_value) if has_prev else 0,
        ),
    ]


def calculate_benchmarks(auction: dict, previous: Optional[dict]) -> list[Benchmark]:
    specs = [
        ("Certified", "certified_sa_c_kg_clean", "ZAR/kg clean"),
        ("All-Merino", "all_merino_sa_c_kg_clean", "ZAR/kg clean"),
        ("AWEX", "exchange_rates_sa_c_kg_clean_awex_emi", "USD/kg clean"),
    ]
    out = []
    for label, column, currency in specs:
        price = _rand(auction, column)
        change = pct_change(price, _rand(previous, column)) if previous is not None else 0
        out.append(Benchmark(label=label, price=price, currency=currency, day_change_pct=change))
    return out


def _currency_values(row: Optional[dict]) -> dict[str, float]:
    usd = _f(row, "exchange_rates_zar_usd")
    usd_aud = _f(row, "exchange_rates_usd_aud")
    return {
        "USD": usd,
        "AUD": usd / usd_aud if usd_aud else 0.0,
        "EUR": _f(row, "exchange_rates_zar_eur"),
        "JPY": _f(row, "exchange_rates_zar_jpy"),
        "GBP": _f(row, "exchange_rates_zar_gbp"),
    }


def calculate_currencies(auction: dict, previous: Optional[dict]) -> list[Currency]:
    current = _currency_values(auction)
    before = _currency_values(previous)
    out = []
    for code, value in current.items():
        prev = before[code]
        change = round((value - prev) / prev * 100, 2) if prev else 0
        out.append(Currency(code=code, value=value, change=change))
    return out


def season_average_prices(auctions: Iterable[dict]) -> list[YearlyAveragePrice]:
    rows = [
        a
        for a in auctions
        if a.get("certified_sa_c_kg_clean") is not None and a.get("all_merino_sa_c_kg_clean") is not None
    ]
    certified = merino = 0.0
    if rows:
        certified = sum(_f(a, "certified_sa_c_kg_clean") for a in rows) / len(rows) / 100
        merino = sum(_f(a, "all_merino_sa_c_kg_clean") for a in rows) / len(rows) / 100
    return [
        YearlyAveragePrice(label="Certified Wool Avg Price (YTD)", value=round(certified, 2)),
        YearlyAveragePrice(label="All - Merino Wool Avg Price (YTD)", value=round(merino, 2)),
    ]


async def buyer_season_totals(store: TableStore, auctions: list[dict]) -> list[BuyerSeasonTotal]:
    """Bales (`cat`) per buyer summed over the given auctions; unresolved buyers are skipped."""

    ids = [a["id"] for a in auctions]
    if not ids:
        return []
    rows = await _select(
        store, "buyer_performance", filters={"auction_id__in": ids, "buyer_id__is_null": False}
    )
    buyers = await load_snapshot(store, "buyer")
    totals: dict[str, int] = {}
    for r in rows:
        name = buyers.name_for(r.get("buyer_id"))
        if not name:
            continue
        totals[name] = totals.get(name, 0) + int(r.get("cat") or 0)
    return [BuyerSeasonTotal(buyer=k, total_bales_season=v) for k, v in totals.items()]


def _season_year(season: dict) -> Optional[int]:
    start = season.get("start_date")
    if start is not None:
        return start.year
    m = _YEAR_RE.search(str(season.get("season_year") or ""))
    return int(m.group(1)) if m else None


def build_trend_series(
    current: list[dict],
    previous: list[dict],
    *,
    current_year: Optional[int] = None,
    previous_year: Optional[int] = None,
) -> SeasonTrends:
    """Align two seasons' published auctions by index into chart series."""

    def price(row: Optional[dict], column: str) -> Optional[float]:
        if not row or not row.get(column):
            return None
        return float(row[column]) / 100

    def rate(row: Optional[dict]) -> float:
        return float(row["exchange_rates_zar_usd"]) if row and row.get("exchange_rates_zar_usd") else 1.0

    trends = SeasonTrends(current_year=current_year, previous_year=previous_year)
    for i in range(max(len(current), len(previous))):
        cur = current[i] if i < len(current) else None
        prev = previous[i] if i < len(previous) else None
        period = str(i + 1)
        if cur:
            number = str(cur.get("catalogue_number") or "")
            period = str(int(number)) if number.isdigit() else period

        for series, column in (("rws", "certified_sa_c_kg_clean"), ("non_rws", "all_merino_sa_c_kg_clean")):
            c, p = price(cur, column), price(prev, column)
            getattr(trends, series).append(
                TrendPoint(
                    period=period,
                    auction_catalogue=period,
                    current_zar=c,
                    previous_zar=p,
                    current_usd=c / rate(cur) if c else None,
                    previous_usd=p / rate(prev) if p else None,
                )
            )

        trends.awex.append(
            TrendPoint(
                period=period,
                auction_catalogue=period,
                current_usd=price(cur, "exchange_rates_sa_c_kg_clean_awex_emi"),
                previous_usd=price(prev, "exchange_rates_sa_c_kg_clean_awex_emi"),
            )
        )

        cur_rate = float(cur["exchange_rates_zar_usd"]) if cur and cur.get("exchange_rates_zar_usd") else None
        prev_rate = float(prev["exchange_rates_zar_usd"]) if prev and prev.get("exchange_rates_zar_usd") else None
        trends.exchange_rates.append(
            TrendPoint(
                period=period,
                auction_catalogue=period,
                current_zar=cur_rate,
                previous_zar=prev_rate,
                current_usd=cur_rate,
                previous_usd=prev_rate,
            )
        )
    return trends


async def season_trends(store: TableStore, season_id: Optional[str], current: list[dict]) -> SeasonTrends:
    if not season_id:
        return SeasonTrends()
    seasons = await _select(store, "seasons")
    season = next((s for s in seasons if s["id"] == season_id), None)
    if season is None:
        return SeasonTrends()

    current_year = _season_year(season)
    previous_year = current_year - 1 if current_year else None
    prev_rows: list[dict] = []
    if previous_year:
        prev_season = next(
            (s for s in seasons if str(s.get("season_year") or "").startswith(str(previous_year))),
            None,
        )
        if prev_season:
            prev_rows = await published_season_auctions(store, prev_season["id"])

    return build_trend_series(current, prev_rows, current_year=current_year, previous_year=previous_year)


async def _previous_by_date(store: TableStore, auction: dict) -> Optional[dict]:
    if auction.get("auction_date") is None:
        return None
    rows = await _select(
        store,
        "auctions",
        filters={"auction_date__lt": auction["auction_date"], "id__ne": auction["id"]},
        order_by=["-auction_date"],
        limit=1,
    )
    return rows[0] if rows else None


async def build_market_summary(store: TableStore, auction_id: str) -> OperationResult:
    try:
        found = await _select(store, "auctions", filters={"id": auction_id}, limit=1)
        if not found:
            raise AuctionNotFoundError(auction_id)
        auction: dict[str, Any] = found[0]

        previous = await previous_auction(
            store,
            season_id=auction.get("season_id"),
            auction_date=auction.get("auction_date"),
            exclude_id=auction_id,
            published_only=True,
        )
        season_rows = await published_season_auctions(store, auction.get("season_id"))

        summary = MarketSummary(
            auction_id=auction_id,
            previous_auction_id=previous["id"] if previous else None,
            indicators=calculate_indicators(
                auction, previous, season_indicator_totals(season_rows) if season_rows else None
            ),
            benchmarks=calculate_benchmarks(auction, previous),
            currencies=calculate_currencies(auction, await _previous_by_date(store, auction)),
            yearly_average_prices=season_average_prices(season_rows),
            buyer_season_totals=await buyer_season_totals(store, season_rows),
            trends=await season_trends(store, auction.get("season_id"), season_rows),
        )
    except ReportEngineError as e:
        logger.warning("market_summary_failed", extra={"auction_id": auction_id, "error": e.message})
        return OperationResult.fail(e.message, kind=e.kind, details=e.details)

    return OperationResult.ok(summary)
