from fastapi import APIRouter, Depends, HTTPException, status

from auction_reports.api.deps import (
    CurrentUser,
    get_insight_composer,
    get_store,
    read_access,
    write_access,
)
from auction_reports.api.envelopes import raise_engine_error, unwrap
from auction_reports.schemas import (
    AuctionReport,
    ComposeInsightRequest,
    ComposeInsightResponse,
    ProducerAddRequest,
    ProducerRemoveRequest,
    RecalculateRequest,
    SaveReportResponse,
    ValidationReport,
)
from auction_reports.services.derived_fields import (
    add_producer,
    apply_derived_fields,
    apply_edit,
    remove_producer,
)
from auction_reports.services.errors import ReportEngineError
from auction_reports.services.insight_composer import (
    InsightComposer,
    build_market_data_summary,
    compose_insights,
)
from auction_reports.services.report_reconciliation import publish_report, save_draft
from auction_reports.services.report_recomposer import recompose_report
from auction_reports.services.report_validation import validate_report
from auction_reports.services.table_store import TableStore

router = APIRouter(prefix="/reports", tags=["reports"])

_STORE_DEP = Depends(get_store)
_READ_DEP = Depends(read_access)
_WRITE_DEP = Depends(write_access)


def _save_response(outcome) -> SaveReportResponse:
    return SaveReportResponse(
        auction_id=outcome.auction_id,
        status=outcome.status,
        created=outcome.created,
        warnings=list(outcome.warnings),
    )


@router.get("/{auction_id}", response_model=AuctionReport)
async def get_report(
    auction_id: str,
    store: TableStore = _STORE_DEP,
    current_user: CurrentUser = _READ_DEP,
):
    try:
        return await recompose_report(store, auction_id)
    except ReportEngineError as e:
        raise_engine_error(e)


@router.post("/draft", response_model=SaveReportResponse)
async def save_report_draft(
    payload: AuctionReport,
    store: TableStore = _STORE_DEP,
    current_user: CurrentUser = _WRITE_DEP,
):
    outcome = unwrap(await save_draft(store, payload, user_id=current_user.id))
    return _save_response(outcome)


@router.post("/publish", response_model=SaveReportResponse)
async def publish(
    payload: AuctionReport,
    store: TableStore = _STORE_DEP,
    current_user: CurrentUser = _WRITE_DEP,
):
    outcome = unwrap(await publish_report(store, payload, user_id=current_user.id))
    return _save_response(outcome)


@router.post("/validate", response_model=ValidationReport)
def validate(payload: AuctionReport, current_user: CurrentUser = _READ_DEP):
    errors = validate_report(payload)
    return ValidationReport(valid=not errors, errors=errors)


@router.post("/recalculate", response_model=AuctionReport)
def recalculate(payload: RecalculateRequest, current_user: CurrentUser = _WRITE_DEP):
    """Apply one edit (or none) and return the report with derived fields refreshed."""

    try:
        if payload.edit is None:
            return apply_derived_fields(payload.report.model_copy(deep=True))
        return apply_edit(payload.report, payload.edit)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.post("/producers/add", response_model=AuctionReport)
def add_producer_row(payload: ProducerAddRequest, current_user: CurrentUser = _WRITE_DEP):
    try:
        return add_producer(payload.report, payload.group_index, payload.producer)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.post("/producers/remove", response_model=AuctionReport)
def remove_producer_row(payload: ProducerRemoveRequest, current_user: CurrentUser = _WRITE_DEP):
    try:
        return remove_producer(payload.report, payload.group_index, payload.row)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.post("/insights/compose", response_model=ComposeInsightResponse)
def compose_market_insights(
    payload: ComposeInsightRequest,
    current_user: CurrentUser = _WRITE_DEP,
    composer: InsightComposer = Depends(get_insight_composer),
):
    text = compose_insights(composer, payload.report, payload.text)
    return ComposeInsightResponse(
        text=text,
        market_data=build_market_data_summary(payload.report).to_dict(),
    )
