from typing import Any, NoReturn

from fastapi import HTTPException, status

from auction_reports.services.errors import ReportEngineError
from auction_reports.services.table_store import OperationResult

_STATUS_BY_KIND = {
    "validation": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "gate": status.HTTP_409_CONFLICT,
    "not_found": status.HTTP_404_NOT_FOUND,
    "store": status.HTTP_502_BAD_GATEWAY,
}


def raise_for_failure(error: str, kind: str | None, details: Any = None) -> NoReturn:
    code = _STATUS_BY_KIND.get(kind or "", status.HTTP_500_INTERNAL_SERVER_ERROR)
    detail: Any = error
    if kind == "validation" and details:
        detail = {"message": error, "errors": details}
    raise HTTPException(status_code=code, detail=detail)


def unwrap(result: OperationResult) -> Any:
    """Return `result.data`, or raise the HTTP error matching the failure kind."""

    if not result.success:
        raise_for_failure(result.error or "Operation failed", result.error_kind, result.details)
    return result.data


def raise_engine_error(exc: ReportEngineError) -> NoReturn:
    raise_for_failure(exc.message, exc.kind, exc.details)
