from datetime import date, datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuctionListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    season_id: Optional[str] = None
    commodity_type_id: Optional[str] = None
    auction_date: Optional[date] = None
    catalogue_name: str
    status: str
    published_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DeletionPreflightRead(BaseModel):
    auction_id: str
    catalogue_name: str
    auction_date: Optional[date] = None
    status: str
    counts: Dict[str, int] = Field(default_factory=dict)
    total_related_records: int = 0


class DeleteResult(BaseModel):
    auction_id: str
    deleted: Dict[str, int] = Field(default_factory=dict)


class ArchiveResult(BaseModel):
    auction_id: str
    status: str
