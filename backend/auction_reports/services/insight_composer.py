"""Boundary to the assistant that drafts market-insight text.

The composer is injected (see `api.deps.get_insight_composer`) and chosen at
startup from the `INSIGHT_COMPOSER` setting. Only a pass-through composer ships
here; an assistant-backed one is registered the same way.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Optional, Protocol

from auction_reports.schemas.reports import AuctionReport
from auction_reports.services.derived_fields import clearance_rate
from auction_reports.services.report_decomposer import compose_catalogue_name

logger = logging.getLogger("auction_reports.insight_composer")

TOP_BUYERS = 5


@dataclass(frozen=True)
class MarketDataSummary:
    auction_date: Optional[str]
    catalogue: str
    total_lots: int
    total_volume_mt: float
    average_price: float
    total_value: float
    clearance_rate: float
    top_buyers: list[dict[str, Any]] = field(default_factory=list)
    micron_prices: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class InsightComposer(Protocol):
    def compose(self, text: str, summary: dict[str, Any]) -> str:
        ...


class PassThroughComposer:
    """Returns the draft unchanged; lets the insights endpoint run without an assistant."""

    def compose(self, text: str, summary: dict[str, Any]) -> str:
        return text


COMPOSERS: dict[str, type] = {"passthrough": PassThroughComposer}


def build_insight_composer(name: Optional[str]) -> Optional[InsightComposer]:
    """Composer for the `INSIGHT_COMPOSER` setting; "none" or blank gives None."""

    key = (name or "").strip().lower() or "none"
    if key == "none":
        return None
    if key not in COMPOSERS:
        raise ValueError(f"unknown insight composer: {name}")
    return COMPOSERS[key]()


def build_market_data_summary(report: AuctionReport) -> MarketDataSummary:
    a = report.auction
    supply = report.supply_stats

    buyers = sorted(report.buyers, key=lambda b: b.share_pct or 0, reverse=True)[:TOP_BUYERS]
    micron_prices = [
        {
            "micron": m.micron,
            "price": m.cert_clean_zar_per_kg if m.cert_clean_zar_per_kg is not None else m.non_cert_clean_zar_per_kg,
            "pct_difference": m.pct_difference,
        }
        for m in sorted(report.micron_prices, key=lambda m: m.micron)
    ]

    return MarketDataSummary(
        auction_date=a.auction_date.isoformat() if a.auction_date else None,
        catalogue=a.catalogue_name or compose_catalogue_name(a.catalogue_prefix, a.catalogue_number),
        total_lots=supply.offered_bales,
        total_volume_mt=round((report.greasy_stats.mass_kg or 0) / 1000, 2),
        average_price=round((report.market_indices.merino_indicator_sa_cents_clean or 0) / 100, 2),
        total_value=report.greasy_stats.turnover_rand,
        clearance_rate=clearance_rate(supply.offered_bales, supply.sold_bales),
        top_buyers=[
            {"name": b.buyer or "", "bales": b.cat, "percentage": b.share_pct} for b in buyers
        ],
        micron_prices=micron_prices,
    )


def compose_insights(composer: InsightComposer, report: AuctionReport, text: Optional[str] = None) -> str:
    """Ask the composer for insight text, seeded with `text` or the report's own insights."""

    summary = build_market_data_summary(report).to_dict()
    draft = report.insights if text is None else text
    logger.info(
        "insight_compose_requested",
        extra={"catalogue": summary["catalogue"], "draft_length": len(draft or "")},
    )
    return composer.compose(draft or "", summary)
