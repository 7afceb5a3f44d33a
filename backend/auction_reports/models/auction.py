# ruff: noqa: E501
from __future__ import annotations

import uuid
from datetime import date, datetime
from enum import Enum as PyEnum

from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from auction_reports.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class AuctionStatus(PyEnum):
    draft = "draft"
    published = "published"
    archived = "archived"


class Auction(Base):
    """One weekly auction report, with every scalar statistic as a flat column."""

    __tablename__ = "auctions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    season_id: Mapped[str | None] = mapped_column(ForeignKey("seasons.id"), nullable=True, index=True)
    commodity_type_id: Mapped[str | None] = mapped_column(ForeignKey("commodity_types.id"), nullable=True)
    auction_date: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    catalogue_prefix: Mapped[str] = mapped_column(String(16), nullable=False, default="CW")
    catalogue_number: Mapped[str] = mapped_column(String(16), nullable=False, default="001")
    week_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    week_end: Mapped[date | None] = mapped_column(Date, nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False, default=AuctionStatus.draft.value, index=True)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    supply_statistics_bales_offered: Mapped[int | None] = mapped_column(Integer, nullable=True)
    supply_statistics_sold_bales: Mapped[int | None] = mapped_column(Integer, nullable=True)
    supply_statistics_clearance_rate: Mapped[float | None] = mapped_column(Float, nullable=True)

    highest_price_price_cents_clean: Mapped[float | None] = mapped_column(Float, nullable=True)
    highest_price_micron: Mapped[float | None] = mapped_column(Float, nullable=True)
    highest_price_bales: Mapped[int | None] = mapped_column(Integer, nullable=True)

    certified_offered_bales: Mapped[int | None] = mapped_column(Integer, nullable=True)
    certified_sold_bales: Mapped[int | None] = mapped_column(Integer, nullable=True)
    certified_all_wool_pct_offered: Mapped[float | None] = mapped_column(Float, nullable=True)
    certified_all_wool_pct_sold: Mapped[float | None] = mapped_column(Float, nullable=True)
    certified_merino_pct_offered: Mapped[float | None] = mapped_column(Float, nullable=True)
    certified_merino_pct_sold: Mapped[float | None] = mapped_column(Float, nullable=True)

    greasy_statistics_turnover: Mapped[float | None] = mapped_column(Float, nullable=True)
    greasy_statistics_bales: Mapped[int | None] = mapped_column(Integer, nullable=True)
    greasy_statistics_mass: Mapped[float | None] = mapped_column(Float, nullable=True)

    all_merino_sa_c_kg_clean: Mapped[float | None] = mapped_column(Float, nullable=True)
    all_merino_us_c_kg_clean: Mapped[float | None] = mapped_column(Float, nullable=True)
    all_merino_euro_c_kg_clean: Mapped[float | None] = mapped_column(Float, nullable=True)
    certified_sa_c_kg_clean: Mapped[float | None] = mapped_column(Float, nullable=True)
    certified_us_c_kg_clean: Mapped[float | None] = mapped_column(Float, nullable=True)
    certified_euro_c_kg_clean: Mapped[float | None] = mapped_column(Float, nullable=True)
    currency_autofilled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    exchange_rates_zar_usd: Mapped[float | None] = mapped_column(Float, nullable=True)
    exchange_rates_zar_eur: Mapped[float | None] = mapped_column(Float, nullable=True)
    exchange_rates_zar_jpy: Mapped[float | None] = mapped_column(Float, nullable=True)
    exchange_rates_zar_gbp: Mapped[float | None] = mapped_column(Float, nullable=True)
    exchange_rates_usd_aud: Mapped[float | None] = mapped_column(Float, nullable=True)
    exchange_rates_sa_c_kg_clean_awex_emi: Mapped[float | None] = mapped_column(Float, nullable=True)

    has_micron_prices: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_buyer_data: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_broker_data: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_provincial_data: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_market_insights: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Plain column (no FK): market_insights already points at auctions.
    market_insights_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class MicronPrice(Base):
    __tablename__ = "micron_prices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    auction_id: Mapped[str] = mapped_column(ForeignKey("auctions.id"), nullable=False, index=True)
    micron: Mapped[float] = mapped_column(Float, nullable=False)
    non_cert_clean_zar_per_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    cert_clean_zar_per_kg: Mapped[float | None] = mapped_column(Float, nullable=True)
    pct_difference: Mapped[float | None] = mapped_column(Float, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class BuyerPerformance(Base):
    __tablename__ = "buyer_performance"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    auction_id: Mapped[str] = mapped_column(ForeignKey("auctions.id"), nullable=False, index=True)
    buyer_id: Mapped[str | None] = mapped_column(ForeignKey("buyers.id"), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cat: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    share_pct: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    bales_ytd: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class BrokerPerformance(Base):
    __tablename__ = "broker_performance"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    auction_id: Mapped[str] = mapped_column(ForeignKey("auctions.id"), nullable=False, index=True)
    broker_id: Mapped[str | None] = mapped_column(ForeignKey("brokers.id"), nullable=True, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    catalogue_offering: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    withdrawn_before_sale: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wool_offered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    withdrawn_during_sale: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    passed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    not_sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sold_pct: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    sold_ytd: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Set when `sold` was entered directly instead of derived from the chain.
    sold_overridden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class TopPerformer(Base):
    __tablename__ = "top_performers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    auction_id: Mapped[str] = mapped_column(ForeignKey("auctions.id"), nullable=False, index=True)
    province_id: Mapped[str | None] = mapped_column(ForeignKey("provinces.id"), nullable=True)
    # Group label as entered and its index within the report.
    province_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    group_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    certification_id: Mapped[str | None] = mapped_column(ForeignKey("certifications.id"), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    district: Mapped[str | None] = mapped_column(String(255), nullable=True)
    producer_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    no_bales: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    micron: Mapped[float | None] = mapped_column(Float, nullable=True)
    price: Mapped[float | None] = mapped_column(Float, nullable=True)
    buyer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class MarketInsight(Base):
    __tablename__ = "market_insights"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    auction_id: Mapped[str] = mapped_column(ForeignKey("auctions.id"), nullable=False, unique=True)
    market_insights_text: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
