from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from auction_reports.schemas.reports import AuctionReport


class ComposeInsightRequest(BaseModel):
    report: AuctionReport
    # Defaults to the report's current insight text.
    text: Optional[str] = None


class ComposeInsightResponse(BaseModel):
    text: str
    market_data: Dict[str, Any] = Field(default_factory=dict)
