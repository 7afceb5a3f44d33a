import os

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from auction_reports.api.deps import CurrentUser, write_access
from auction_reports.schemas import ProducerImportRead
from auction_reports.services.producer_import import import_producers_csv

router = APIRouter(prefix="/imports", tags=["imports"])

_MAX_CSV_BYTES = 2 * 1024 * 1024


@router.post("/producers", response_model=ProducerImportRead)
def import_producers(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(write_access),
):
    """Parse a producers CSV into province groups; nothing is stored until the report is saved."""

    filename = (file.filename or "").lower()
    if filename and not filename.endswith(".csv"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unsupported file type")
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    if size > _MAX_CSV_BYTES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File too large (max 2MB)")

    try:
        result = import_producers_csv(file.file.read())
    except UnicodeDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="CSV must be UTF-8 encoded")

    return ProducerImportRead(
        groups=result.groups,
        errors=result.errors,
        imported=result.imported,
        skipped=result.skipped,
    )
