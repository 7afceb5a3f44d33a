from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _Read(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class BuyerRead(_Read):
    id: str
    buyer_name: str
    created_at: Optional[datetime] = None


class BrokerRead(_Read):
    id: str
    name: str
    created_at: Optional[datetime] = None


class ProvinceRead(_Read):
    id: str
    name: str
    abbreviation: Optional[str] = None
    country: str = "South Africa"


class CertificationRead(_Read):
    id: str
    name: str
    code: str


class SeasonRead(_Read):
    id: str
    season_year: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str


class SeasonCreate(BaseModel):
    season_year: str = Field(..., min_length=4, max_length=16)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class CommodityTypeRead(_Read):
    id: str
    name: str


class ReferenceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ReferenceCreated(BaseModel):
    id: str
    name: str
    created: bool
