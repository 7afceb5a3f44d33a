from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class Indicator(BaseModel):
    type: Literal["total_lots", "total_volume", "avg_price", "total_value"]
    unit: str
    value: float
    value_ytd: Optional[float] = None
    pct_change: float = 0


class Benchmark(BaseModel):
    label: Literal["Certified", "All-Merino", "AWEX"]
    price: float
    currency: str
    day_change_pct: float = 0


class Currency(BaseModel):
    code: Literal["USD", "AUD", "EUR", "JPY", "GBP"]
    value: float
    change: float = 0


class YearlyAveragePrice(BaseModel):
    label: str
    value: float
    unit: str = "ZAR/kg"


class BuyerSeasonTotal(BaseModel):
    buyer: str
    total_bales_season: int


class TrendPoint(BaseModel):
    period: str
    auction_catalogue: Optional[str] = None
    current_zar: Optional[float] = None
    previous_zar: Optional[float] = None
    current_usd: Optional[float] = None
    previous_usd: Optional[float] = None


class SeasonTrends(BaseModel):
    current_year: Optional[int] = None
    previous_year: Optional[int] = None
    rws: List[TrendPoint] = Field(default_factory=list)
    non_rws: List[TrendPoint] = Field(default_factory=list)
    awex: List[TrendPoint] = Field(default_factory=list)
    exchange_rates: List[TrendPoint] = Field(default_factory=list)


class MarketSummary(BaseModel):
    auction_id: str
    previous_auction_id: Optional[str] = None
    indicators: List[Indicator] = Field(default_factory=list)
    benchmarks: List[Benchmark] = Field(default_factory=list)
    currencies: List[Currency] = Field(default_factory=list)
    yearly_average_prices: List[YearlyAveragePrice] = Field(default_factory=list)
    buyer_season_totals: List[BuyerSeasonTotal] = Field(default_factory=list)
    trends: SeasonTrends = Field(default_factory=SeasonTrends)
