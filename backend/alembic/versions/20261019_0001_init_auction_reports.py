"""init auction report tables

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001_init_auction_reports"
down_revision = None
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(length=36), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now())


def _created_by() -> sa.Column:
    return sa.Column("created_by", sa.String(length=255), nullable=True)


def _auction_fk() -> sa.Column:
    return sa.Column("auction_id", sa.String(length=36), sa.ForeignKey("auctions.id"), nullable=False)


def upgrade() -> None:
    op.create_table(
        "seasons",
        _id(),
        sa.Column("season_year", sa.String(length=16), nullable=False, unique=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        _created_by(),
        _created_at(),
    )
    op.create_table(
        "commodity_types",
        _id(),
        sa.Column("name", sa.String(length=64), nullable=False, unique=True),
        _created_at(),
    )
    op.create_table(
        "buyers",
        _id(),
        sa.Column("buyer_name", sa.String(length=255), nullable=False),
        _created_by(),
        _created_at(),
    )
    op.create_index("ix_buyers_buyer_name", "buyers", ["buyer_name"])
    op.create_table(
        "brokers",
        _id(),
        sa.Column("name", sa.String(length=255), nullable=False),
        _created_by(),
        _created_at(),
    )
    op.create_index("ix_brokers_name", "brokers", ["name"])
    op.create_table(
        "provinces",
        _id(),
        sa.Column("name", sa.String(length=128), nullable=False, unique=True),
        sa.Column("abbreviation", sa.String(length=8), nullable=True),
        sa.Column("country", sa.String(length=64), nullable=False, server_default="South Africa"),
        _created_at(),
    )
    op.create_table(
        "certifications",
        _id(),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("code", sa.String(length=16), nullable=False, unique=True),
        _created_at(),
    )

    op.create_table(
        "auctions",
        _id(),
        sa.Column("season_id", sa.String(length=36), sa.ForeignKey("seasons.id"), nullable=True),
        sa.Column("commodity_type_id", sa.String(length=36), sa.ForeignKey("commodity_types.id"), nullable=True),
        sa.Column("auction_date", sa.Date(), nullable=True),
        sa.Column("catalogue_prefix", sa.String(length=16), nullable=False, server_default="CW"),
        sa.Column("catalogue_number", sa.String(length=16), nullable=False, server_default="001"),
        sa.Column("week_start", sa.Date(), nullable=True),
        sa.Column("week_end", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="draft"),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("supply_statistics_bales_offered", sa.Integer(), nullable=True),
        sa.Column("supply_statistics_sold_bales", sa.Integer(), nullable=True),
        sa.Column("supply_statistics_clearance_rate", sa.Float(), nullable=True),
        sa.Column("highest_price_price_cents_clean", sa.Float(), nullable=True),
        sa.Column("highest_price_micron", sa.Float(), nullable=True),
        sa.Column("highest_price_bales", sa.Integer(), nullable=True),
        sa.Column("certified_offered_bales", sa.Integer(), nullable=True),
        sa.Column("certified_sold_bales", sa.Integer(), nullable=True),
        sa.Column("certified_all_wool_pct_offered", sa.Float(), nullable=True),
        sa.Column("certified_all_wool_pct_sold", sa.Float(), nullable=True),
        sa.Column("certified_merino_pct_offered", sa.Float(), nullable=True),
        sa.Column("certified_merino_pct_sold", sa.Float(), nullable=True),
        sa.Column("greasy_statistics_turnover", sa.Float(), nullable=True),
        sa.Column("greasy_statistics_bales", sa.Integer(), nullable=True),
        sa.Column("greasy_statistics_mass", sa.Float(), nullable=True),
        sa.Column("all_merino_sa_c_kg_clean", sa.Float(), nullable=True),
        sa.Column("all_merino_us_c_kg_clean", sa.Float(), nullable=True),
        sa.Column("all_merino_euro_c_kg_clean", sa.Float(), nullable=True),
        sa.Column("certified_sa_c_kg_clean", sa.Float(), nullable=True),
        sa.Column("certified_us_c_kg_clean", sa.Float(), nullable=True),
        sa.Column("certified_euro_c_kg_clean", sa.Float(), nullable=True),
        sa.Column("currency_autofilled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("exchange_rates_zar_usd", sa.Float(), nullable=True),
        sa.Column("exchange_rates_zar_eur", sa.Float(), nullable=True),
        sa.Column("exchange_rates_zar_jpy", sa.Float(), nullable=True),
        sa.Column("exchange_rates_zar_gbp", sa.Float(), nullable=True),
        sa.Column("exchange_rates_usd_aud", sa.Float(), nullable=True),
        sa.Column("exchange_rates_sa_c_kg_clean_awex_emi", sa.Float(), nullable=True),
        sa.Column("has_micron_prices", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_buyer_data", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_broker_data", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_provincial_data", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("has_market_insights", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("market_insights_id", sa.String(length=36), nullable=True),
        _created_by(),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_auctions_season_id", "auctions", ["season_id"])
    op.create_index("ix_auctions_auction_date", "auctions", ["auction_date"])
    op.create_index("ix_auctions_status", "auctions", ["status"])

    op.create_table(
        "micron_prices",
        _id(),
        _auction_fk(),
        sa.Column("micron", sa.Float(), nullable=False),
        sa.Column("non_cert_clean_zar_per_kg", sa.Float(), nullable=True),
        sa.Column("cert_clean_zar_per_kg", sa.Float(), nullable=True),
        sa.Column("pct_difference", sa.Float(), nullable=True),
        _created_by(),
        _created_at(),
    )
    op.create_index("ix_micron_prices_auction_id", "micron_prices", ["auction_id"])

    op.create_table(
        "buyer_performance",
        _id(),
        _auction_fk(),
        sa.Column("buyer_id", sa.String(length=36), sa.ForeignKey("buyers.id"), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cat", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("share_pct", sa.Float(), nullable=False, server_default="0"),
        sa.Column("bales_ytd", sa.Integer(), nullable=False, server_default="0"),
        _created_by(),
        _created_at(),
    )
    op.create_index("ix_buyer_performance_auction_id", "buyer_performance", ["auction_id"])

    op.create_table(
        "broker_performance",
        _id(),
        _auction_fk(),
        sa.Column("broker_id", sa.String(length=36), sa.ForeignKey("brokers.id"), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("catalogue_offering", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("withdrawn_before_sale", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("wool_offered", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("withdrawn_during_sale", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("passed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("not_sold", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sold", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sold_pct", sa.Float(), nullable=False, server_default="0"),
        sa.Column("sold_ytd", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sold_overridden", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_by(),
        _created_at(),
    )
    op.create_index("ix_broker_performance_auction_id", "broker_performance", ["auction_id"])
    op.create_index("ix_broker_performance_broker_id", "broker_performance", ["broker_id"])

    op.create_table(
        "top_performers",
        _id(),
        _auction_fk(),
        sa.Column("province_id", sa.String(length=36), sa.ForeignKey("provinces.id"), nullable=True),
        sa.Column("province_name", sa.String(length=128), nullable=True),
        sa.Column("group_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("certification_id", sa.String(length=36), sa.ForeignKey("certifications.id"), nullable=True),
        sa.Column("position", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("district", sa.String(length=255), nullable=True),
        sa.Column("producer_number", sa.String(length=64), nullable=True),
        sa.Column("no_bales", sa.Integer(), nullable=True),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("micron", sa.Float(), nullable=True),
        sa.Column("price", sa.Float(), nullable=True),
        sa.Column("buyer_name", sa.String(length=255), nullable=True),
        _created_by(),
        _created_at(),
    )
    op.create_index("ix_top_performers_auction_id", "top_performers", ["auction_id"])

    op.create_table(
        "market_insights",
        _id(),
        sa.Column("auction_id", sa.String(length=36), sa.ForeignKey("auctions.id"), nullable=False, unique=True),
        sa.Column("market_insights_text", sa.Text(), nullable=False),
        _created_by(),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("market_insights")
    op.drop_index("ix_top_performers_auction_id", table_name="top_performers")
    op.drop_table("top_performers")
    op.drop_index("ix_broker_performance_broker_id", table_name="broker_performance")
    op.drop_index("ix_broker_performance_auction_id", table_name="broker_performance")
    op.drop_table("broker_performance")
    op.drop_index("ix_buyer_performance_auction_id", table_name="buyer_performance")
    op.drop_table("buyer_performance")
    op.drop_index("ix_micron_prices_auction_id", table_name="micron_prices")
    op.drop_table("micron_prices")
    op.drop_index("ix_auctions_status", table_name="auctions")
    op.drop_index("ix_auctions_auction_date", table_name="auctions")
    op.drop_index("ix_auctions_season_id", table_name="auctions")
    op.drop_table("auctions")
    op.drop_table("certifications")
    op.drop_table("provinces")
    op.drop_index("ix_brokers_name", table_name="brokers")
    op.drop_table("brokers")
    op.drop_index("ix_buyers_buyer_name", table_name="buyers")
    op.drop_table("buyers")
    op.drop_table("commodity_types")
    op.drop_table("seasons")
