from typing import List

from pydantic import BaseModel, Field

from auction_reports.schemas.reports import ProvincialGroup


class ProducerImportRead(BaseModel):
    groups: List[ProvincialGroup] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    imported: int = 0
    skipped: int = 0
