from fastapi import APIRouter

from auction_reports.api.routes import auctions, imports, reference_data, reports

api_router = APIRouter()
api_router.include_router(reports.router)
api_router.include_router(auctions.router)
api_router.include_router(reference_data.router)
api_router.include_router(imports.router)
