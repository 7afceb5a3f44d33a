from auction_reports.schemas.auctions import (
    ArchiveResult,
    AuctionListItem,
    DeleteResult,
    DeletionPreflightRead,
)
from auction_reports.schemas.imports import ProducerImportRead
from auction_reports.schemas.insights import ComposeInsightRequest, ComposeInsightResponse
from auction_reports.schemas.market import MarketSummary
from auction_reports.schemas.reference import (
    BrokerRead,
    BuyerRead,
    CertificationRead,
    CommodityTypeRead,
    ProvinceRead,
    ReferenceCreate,
    ReferenceCreated,
    SeasonCreate,
    SeasonRead,
)
from auction_reports.schemas.reports import (
    AuctionReport,
    FieldEdit,
    ProducerAddRequest,
    ProducerRemoveRequest,
    RecalculateRequest,
    SaveReportResponse,
    ValidationReport,
)

__all__ = [
    "ArchiveResult",
    "AuctionListItem",
    "AuctionReport",
    "BrokerRead",
    "BuyerRead",
    "CertificationRead",
    "CommodityTypeRead",
    "ComposeInsightRequest",
    "ComposeInsightResponse",
    "DeleteResult",
    "DeletionPreflightRead",
    "FieldEdit",
    "MarketSummary",
    "ProducerAddRequest",
    "ProducerImportRead",
    "ProducerRemoveRequest",
    "ProvinceRead",
    "RecalculateRequest",
    "ReferenceCreate",
    "ReferenceCreated",
    "SaveReportResponse",
    "SeasonCreate",
    "SeasonRead",
    "ValidationReport",
]
