from __future__ import annotations

from typing import Any


class ReportEngineError(Exception):
    """Base class for failures raised inside the report engine.

    Services convert these into `OperationResult` envelopes at their public
    boundary; the API layer maps the envelope's `error_kind` to a status code.
    """

    kind = "engine_error"

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ReportValidationError(ReportEngineError):
    kind = "validation"

    def __init__(self, errors: dict[str, list[str]]) -> None:
        flat = [f"{tab}: {msg}" for tab, msgs in errors.items() for msg in msgs]
        super().__init__("Report validation failed: " + "; ".join(flat), details=errors)
        self.errors = errors


class StoreOperationError(ReportEngineError):
    kind = "store"

    def __init__(self, table: str, error: str) -> None:
        super().__init__(f"{table}: {error}", details={"table": table})
        self.table = table


class PublishGateError(ReportEngineError):
    kind = "gate"


class AuctionNotFoundError(ReportEngineError):
    kind = "not_found"

    def __init__(self, auction_id: str) -> None:
        super().__init__(f"Auction not found: {auction_id}", details={"auction_id": auction_id})
        self.auction_id = auction_id
