from datetime import date
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field

# Placeholder the capture form used to put into a name field to request a new
# reference row. It is never a valid buyer/broker name.
LEGACY_ADD_NEW_SENTINEL = "[+Add New]"

ReportStatus = Literal["draft", "published", "archived"]


class ExistingSelection(BaseModel):
    kind: Literal["existing"] = "existing"
    id: str


class CreateNewSelection(BaseModel):
    kind: Literal["create_new"] = "create_new"
    name: str = Field(..., min_length=1, max_length=255)


Selection = Annotated[Union[ExistingSelection, CreateNewSelection], Field(discriminator="kind")]


class AuctionHeader(BaseModel):
    id: Optional[str] = None
    commodity: Literal["wool", "mohair"] = "wool"
    season_id: Optional[str] = None
    season_label: Optional[str] = None
    commodity_type_id: Optional[str] = None
    week_id: Optional[str] = None
    week_start: Optional[date] = None
    week_end: Optional[date] = None
    auction_date: Optional[date] = None
    # e.g. "CG01"; split into prefix/number on save.
    catalogue_name: Optional[str] = None
    catalogue_prefix: Optional[str] = None
    catalogue_number: Optional[str] = None


class MarketIndices(BaseModel):
    merino_indicator_sa_cents_clean: float = 0
    merino_indicator_us_cents_clean: float = 0
    merino_indicator_euro_cents_clean: float = 0
    certified_indicator_sa_cents_clean: float = 0
    certified_indicator_us_cents_clean: float = 0
    certified_indicator_euro_cents_clean: float = 0
    awex_emi_sa_cents_clean: float = 0
    # Once set, the US/Euro fields are never overwritten by conversion again.
    currency_autofilled: bool = False


class CurrencyFx(BaseModel):
    zar_usd: float = 0
    zar_eur: float = 0
    zar_jpy: float = 0
    zar_gbp: float = 0
    usd_aud: float = 0


class SupplyStats(BaseModel):
    offered_bales: int = 0
    sold_bales: int = 0
    clearance_rate_pct: float = 0


class HighestPrice(BaseModel):
    price_cents_clean: float = 0
    micron: float = 0
    bales: int = 0


class CertifiedShare(BaseModel):
    offered_bales: int = 0
    sold_bales: int = 0
    all_wool_pct_offered: float = 0
    all_wool_pct_sold: float = 0
    merino_pct_offered: float = 0
    merino_pct_sold: float = 0


class GreasyStats(BaseModel):
    turnover_rand: float = 0
    bales: int = 0
    mass_kg: float = 0


class MicronPriceRow(BaseModel):
    micron: float
    non_cert_clean_zar_per_kg: Optional[float] = None
    cert_clean_zar_per_kg: Optional[float] = None
    pct_difference: Optional[float] = None


class BuyerRow(BaseModel):
    buyer: Optional[str] = ""
    selection: Optional[Selection] = None
    cat: int = 0
    share_pct: float = 0
    bales_ytd: int = 0


class BrokerSnapshot(BaseModel):
    catalogue_offering: int = 0
    withdrawn_before_sale: int = 0
    wool_offered: int = 0
    withdrawn_during_sale: int = 0
    passed: int = 0
    not_sold: int = 0
    sold: int = 0
    sold_pct: float = 0
    sold_ytd: int = 0


class BrokerRow(BrokerSnapshot):
    name: Optional[str] = ""
    selection: Optional[Selection] = None
    sold_overridden: bool = False
    previous_week: Optional[BrokerSnapshot] = None


class ProvincialProducer(BaseModel):
    position: int = 1
    name: str = ""
    district: Optional[str] = None
    producer_number: Optional[str] = None
    no_bales: Optional[int] = None
    price: Optional[float] = None
    description: Optional[str] = None
    micron: Optional[float] = None
    certified: Literal["RWS", ""] = ""
    buyer_name: Optional[str] = None


class ProvincialGroup(BaseModel):
    province: str = ""
    province_id: Optional[str] = None
    producers: List[ProvincialProducer] = Field(default_factory=list)


class AuctionReport(BaseModel):
    """The nested document exchanged with the capture form."""

    auction: AuctionHeader = Field(default_factory=AuctionHeader)
    market_indices: MarketIndices = Field(default_factory=MarketIndices)
    currency_fx: CurrencyFx = Field(default_factory=CurrencyFx)
    supply_stats: SupplyStats = Field(default_factory=SupplyStats)
    highest_price: HighestPrice = Field(default_factory=HighestPrice)
    certified_share: CertifiedShare = Field(default_factory=CertifiedShare)
    greasy_stats: GreasyStats = Field(default_factory=GreasyStats)
    micron_prices: List[MicronPriceRow] = Field(default_factory=list)
    buyers: List[BuyerRow] = Field(default_factory=list)
    brokers: List[BrokerRow] = Field(default_factory=list)
    provincial_producers: List[ProvincialGroup] = Field(default_factory=list)
    insights: str = ""
    status: ReportStatus = "draft"


RecalcSection = Literal[
    "supply_stats",
    "market_indices",
    "currency_fx",
    "micron_prices",
    "buyers",
    "brokers",
    "provincial_producers",
]


class FieldEdit(BaseModel):
    """One edit applied to a report before recomputing derived fields.

    `index` addresses a row in list sections; for `provincial_producers` it
    addresses the province group and `row` the producer within it.
    """

    section: RecalcSection
    field: str
    value: Any = None
    index: Optional[int] = Field(None, ge=0)
    row: Optional[int] = Field(None, ge=0)


class RecalculateRequest(BaseModel):
    report: AuctionReport
    edit: Optional[FieldEdit] = None


class ProducerAddRequest(BaseModel):
    report: AuctionReport
    group_index: int = Field(..., ge=0)
    producer: ProvincialProducer = Field(default_factory=ProvincialProducer)


class ProducerRemoveRequest(BaseModel):
    report: AuctionReport
    group_index: int = Field(..., ge=0)
    row: int = Field(..., ge=0)


class SaveReportResponse(BaseModel):
    auction_id: str
    status: ReportStatus
    created: bool
    warnings: List[str] = Field(default_factory=list)


class ValidationReport(BaseModel):
    valid: bool
    errors: dict[str, List[str]] = Field(default_factory=dict)
