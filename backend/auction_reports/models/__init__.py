from auction_reports.models.auction import (
    Auction,
    AuctionStatus,
    BrokerPerformance,
    BuyerPerformance,
    MarketInsight,
    MicronPrice,
    TopPerformer,
)
from auction_reports.models.reference import (
    Broker,
    Buyer,
    Certification,
    CommodityType,
    Province,
    RoleName,
    Season,
    SeasonStatus,
)

__all__ = [
    "Auction",
    "AuctionStatus",
    "Broker",
    "BrokerPerformance",
    "Buyer",
    "BuyerPerformance",
    "Certification",
    "CommodityType",
    "MarketInsight",
    "MicronPrice",
    "Province",
    "RoleName",
    "Season",
    "SeasonStatus",
    "TopPerformer",
]
