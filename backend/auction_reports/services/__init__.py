from auction_reports.services.auction_deletion import delete_auction_cascade, deletion_preflight
from auction_reports.services.market_summary import build_market_summary
from auction_reports.services.report_reconciliation import archive_auction, publish_report, save_draft
from auction_reports.services.report_recomposer import recompose_report
from auction_reports.services.report_validation import validate_report
from auction_reports.services.table_store import OperationResult, TableStore

__all__ = [
    "OperationResult",
    "TableStore",
    "archive_auction",
    "build_market_summary",
    "delete_auction_cascade",
    "deletion_preflight",
    "publish_report",
    "recompose_report",
    "save_draft",
    "validate_report",
]
