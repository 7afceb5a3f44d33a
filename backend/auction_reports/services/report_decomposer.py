from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Optional

from auction_reports.schemas.reports import AuctionReport
from auction_reports.services.name_resolver import (
    ReferenceSnapshots,
    resolve_certification,
    resolve_province,
    resolve_row_reference,
)

DEFAULT_CATALOGUE_PREFIX = "CW"
DEFAULT_CATALOGUE_NUMBER = "001"

_CATALOGUE_RE = re.compile(r"^([A-Za-z]+)\s*(.*)$")


def parse_catalogue_name(catalogue_name: Optional[str]) -> tuple[str, str]:
    """Split a catalogue name into (prefix, number).

    "CG01" -> ("CG", "01"), "CG01A" -> ("CG", "01A"), letters only ->
    ("MOHAIR", "001"). Blank input, or input that does not start with a
    letter, gives ("CW", "001").
    """

    s = (catalogue_name or "").strip()
    m = _CATALOGUE_RE.match(s)
    if not m:
        return DEFAULT_CATALOGUE_PREFIX, DEFAULT_CATALOGUE_NUMBER
    prefix, rest = m.group(1), m.group(2).strip()
    return prefix, rest or DEFAULT_CATALOGUE_NUMBER


def catalogue_falls_back(catalogue_name: Optional[str]) -> bool:
    """True when a non-blank name cannot be split and the default catalogue is used."""

    s = (catalogue_name or "").strip()
    return bool(s) and _CATALOGUE_RE.match(s) is None


def compose_catalogue_name(prefix: Optional[str], number: Optional[str]) -> str:
    return f"{prefix or ''}{number or ''}"


@dataclass(frozen=True)
class DecomposedReport:
    auction: dict[str, Any]
    micron_prices: list[dict[str, Any]] = field(default_factory=list)
    buyer_performance: list[dict[str, Any]] = field(default_factory=list)
    broker_performance: list[dict[str, Any]] = field(default_factory=list)
    top_performers: list[dict[str, Any]] = field(default_factory=list)
    market_insight: Optional[dict[str, Any]] = None
    warnings: tuple[str, ...] = ()


def report_catalogue_name(report: AuctionReport) -> Optional[str]:
    a = report.auction
    if not a.catalogue_name and a.catalogue_prefix and a.catalogue_number:
        return compose_catalogue_name(a.catalogue_prefix, a.catalogue_number)
    return a.catalogue_name


def auction_payload(report: AuctionReport) -> dict[str, Any]:
    """Flatten the header and every scalar statistic group onto one auctions row."""

    a = report.auction
    prefix, number = parse_catalogue_name(report_catalogue_name(report))

    mi = report.market_indices
    fx = report.currency_fx
    ss = report.supply_stats
    hp = report.highest_price
    cs = report.certified_share
    gs = report.greasy_stats

    return {
        "season_id": a.season_id,
        "commodity_type_id": a.commodity_type_id,
        "auction_date": a.auction_date,
        "week_start": a.week_start,
        "week_end": a.week_end,
        "catalogue_prefix": prefix,
        "catalogue_number": number,
        "supply_statistics_bales_offered": ss.offered_bales,
        "supply_statistics_sold_bales": ss.sold_bales,
        "supply_statistics_clearance_rate": ss.clearance_rate_pct,
        "highest_price_price_cents_clean": hp.price_cents_clean,
        "highest_price_micron": hp.micron,
        "highest_price_bales": hp.bales,
        "certified_offered_bales": cs.offered_bales,
        "certified_sold_bales": cs.sold_bales,
        "certified_all_wool_pct_offered": cs.all_wool_pct_offered,
        "certified_all_wool_pct_sold": cs.all_wool_pct_sold,
        "certified_merino_pct_offered": cs.merino_pct_offered,
        "certified_merino_pct_sold": cs.merino_pct_sold,
        "greasy_statistics_turnover": gs.turnover_rand,
        "greasy_statistics_bales": gs.bales,
        "greasy_statistics_mass": gs.mass_kg,
        "all_merino_sa_c_kg_clean": mi.merino_indicator_sa_cents_clean,
        "all_merino_us_c_kg_clean": mi.merino_indicator_us_cents_clean,
        "all_merino_euro_c_kg_clean": mi.merino_indicator_euro_cents_clean,
        "certified_sa_c_kg_clean": mi.certified_indicator_sa_cents_clean,
        "certified_us_c_kg_clean": mi.certified_indicator_us_cents_clean,
        "certified_euro_c_kg_clean": mi.certified_indicator_euro_cents_clean,
        "currency_autofilled": mi.currency_autofilled,
        "exchange_rates_zar_usd": fx.zar_usd,
        "exchange_rates_zar_eur": fx.zar_eur,
        "exchange_rates_zar_jpy": fx.zar_jpy,
        "exchange_rates_zar_gbp": fx.zar_gbp,
        "exchange_rates_usd_aud": fx.usd_aud,
        "exchange_rates_sa_c_kg_clean_awex_emi": mi.awex_emi_sa_cents_clean,
    }


def decompose_report(
    report: AuctionReport,
    snapshots: ReferenceSnapshots,
    *,
    auction_id: str,
    user_id: Optional[str] = None,
) -> DecomposedReport:
    """Per-table payloads for one report.

    Expects derived fields to be applied already. Name misses give a null
    foreign key and a warning; they never drop the row.
    """

    warnings: list[str] = []
    catalogue = report_catalogue_name(report)
    if catalogue_falls_back(catalogue):
        warnings.append(
            f"catalogue name {catalogue!r} not recognized; stored as "
            f"{DEFAULT_CATALOGUE_PREFIX}{DEFAULT_CATALOGUE_NUMBER}"
        )

    micron_rows = [
        {
            "auction_id": auction_id,
            "micron": row.micron,
            "non_cert_clean_zar_per_kg": row.non_cert_clean_zar_per_kg,
            "cert_clean_zar_per_kg": row.cert_clean_zar_per_kg,
            "pct_difference": row.pct_difference,
            "created_by": user_id,
        }
        for row in report.micron_prices
        if row.non_cert_clean_zar_per_kg is not None or row.cert_clean_zar_per_kg is not None
    ]

    buyer_rows = []
    for i, b in enumerate(report.buyers):
        buyer_rows.append(
            {
                "auction_id": auction_id,
                "buyer_id": resolve_row_reference(snapshots.buyers, b.buyer, b.selection, warnings=warnings),
                "sort_order": i,
                "cat": b.cat,
                "share_pct": b.share_pct,
                "bales_ytd": b.bales_ytd,
                "created_by": user_id,
            }
        )

    broker_rows = []
    for i, br in enumerate(report.brokers):
        broker_rows.append(
            {
                "auction_id": auction_id,
                "broker_id": resolve_row_reference(snapshots.brokers, br.name, br.selection, warnings=warnings),
                "sort_order": i,
                "catalogue_offering": br.catalogue_offering,
                "withdrawn_before_sale": br.withdrawn_before_sale,
                "wool_offered": br.wool_offered,
                "withdrawn_during_sale": br.withdrawn_during_sale,
                "passed": br.passed,
                "not_sold": br.not_sold,
                "sold": br.sold,
                "sold_pct": br.sold_pct,
                "sold_ytd": br.sold_ytd,
                "sold_overridden": br.sold_overridden,
                "created_by": user_id,
            }
        )

    top_rows = []
    for gi, group in enumerate(report.provincial_producers):
        province_id = resolve_province(
            snapshots.provinces, group.province, group.province_id, warnings=warnings
        )
        for p in group.producers:
            top_rows.append(
                {
                    "auction_id": auction_id,
                    "province_id": province_id,
                    "province_name": (group.province or "").strip() or None,
                    "group_order": gi,
                    "certification_id": resolve_certification(snapshots.certifications, p.certified),
                    "position": p.position,
                    "name": p.name,
                    "district": p.district,
                    "producer_number": p.producer_number,
                    "no_bales": p.no_bales,
                    "description": p.description,
                    "micron": p.micron,
                    "price": p.price,
                    "buyer_name": p.buyer_name,
                    "created_by": user_id,
                }
            )

    insight = None
    if (report.insights or "").strip():
        insight = {
            "auction_id": auction_id,
            "market_insights_text": report.insights,
            "created_by": user_id,
        }

    auction = auction_payload(report)
    auction.update(
        {
            "has_micron_prices": bool(micron_rows),
            "has_buyer_data": bool(buyer_rows),
            "has_broker_data": bool(broker_rows),
            "has_provincial_data": bool(top_rows),
        }
    )

    return DecomposedReport(
        auction=auction,
        micron_prices=micron_rows,
        buyer_performance=buyer_rows,
        broker_performance=broker_rows,
        top_performers=top_rows,
        market_insight=insight,
        warnings=tuple(warnings),
    )
