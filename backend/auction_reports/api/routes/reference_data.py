from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from auction_reports.api.deps import CurrentUser, admin_access, get_store, read_access, write_access
from auction_reports.api.envelopes import raise_engine_error, unwrap
from auction_reports.schemas import (
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
from auction_reports.services.errors import ReportEngineError
from auction_reports.services.name_resolver import ensure_reference, load_snapshot
from auction_reports.services.table_store import TableStore

router = APIRouter(prefix="/reference", tags=["reference"])

_STORE_DEP = Depends(get_store)
_READ_DEP = Depends(read_access)


@router.get("/buyers", response_model=List[BuyerRead])
async def list_buyers(store: TableStore = _STORE_DEP, current_user: CurrentUser = _READ_DEP):
    return unwrap(await store.select("buyers", order_by="buyer_name"))


@router.get("/brokers", response_model=List[BrokerRead])
async def list_brokers(store: TableStore = _STORE_DEP, current_user: CurrentUser = _READ_DEP):
    return unwrap(await store.select("brokers", order_by="name"))


@router.get("/provinces", response_model=List[ProvinceRead])
async def list_provinces(store: TableStore = _STORE_DEP, current_user: CurrentUser = _READ_DEP):
    return unwrap(await store.select("provinces", order_by="name"))


@router.get("/certifications", response_model=List[CertificationRead])
async def list_certifications(store: TableStore = _STORE_DEP, current_user: CurrentUser = _READ_DEP):
    return unwrap(await store.select("certifications", order_by="code"))


@router.get("/commodity-types", response_model=List[CommodityTypeRead])
async def list_commodity_types(store: TableStore = _STORE_DEP, current_user: CurrentUser = _READ_DEP):
    return unwrap(await store.select("commodity_types", order_by="name"))


@router.get("/seasons", response_model=List[SeasonRead])
async def list_seasons(store: TableStore = _STORE_DEP, current_user: CurrentUser = _READ_DEP):
    return unwrap(await store.select("seasons", order_by="-season_year"))


@router.post("/seasons", response_model=SeasonRead, status_code=status.HTTP_201_CREATED)
async def create_season(
    payload: SeasonCreate,
    store: TableStore = _STORE_DEP,
    current_user: CurrentUser = Depends(admin_access),
):
    async with store.transaction():
        existing = unwrap(await store.select_one("seasons", filters={"season_year": payload.season_year}))
        if existing:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Season already exists")
        rows = unwrap(
            await store.insert("seasons", {**payload.model_dump(), "created_by": current_user.id})
        )
    return rows[0]


async def _create_reference(
    kind: str,
    payload: ReferenceCreate,
    response: Response,
    store: TableStore,
    current_user: CurrentUser,
) -> ReferenceCreated:
    try:
        async with store.transaction():
            snapshot = await load_snapshot(store, kind)
            ref_id, created = await ensure_reference(store, snapshot, payload.name, created_by=current_user.id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except ReportEngineError as e:
        raise_engine_error(e)

    # An existing match is returned as-is rather than duplicated.
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return ReferenceCreated(id=ref_id, name=snapshot.name_for(ref_id) or payload.name, created=created)


@router.post("/buyers", response_model=ReferenceCreated, status_code=status.HTTP_201_CREATED)
async def create_buyer(
    payload: ReferenceCreate,
    response: Response,
    store: TableStore = _STORE_DEP,
    current_user: CurrentUser = Depends(write_access),
):
    return await _create_reference("buyer", payload, response, store, current_user)


@router.post("/brokers", response_model=ReferenceCreated, status_code=status.HTTP_201_CREATED)
async def create_broker(
    payload: ReferenceCreate,
    response: Response,
    store: TableStore = _STORE_DEP,
    current_user: CurrentUser = Depends(write_access),
):
    return await _create_reference("broker", payload, response, store, current_user)
