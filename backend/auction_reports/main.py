import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from auction_reports.api.router import api_router
from auction_reports.config import settings
from auction_reports.core.observability import (
    global_exception_handler,
    request_logging_middleware,
    uptime_seconds,
    utc_now_iso,
)
from auction_reports.database import POOL_CONFIG, Base, SessionLocal, engine
from auction_reports.services.errors import StoreOperationError
from auction_reports.services.insight_composer import build_insight_composer
from auction_reports.services.reference_seed import seed_reference_data
from auction_reports.services.table_store import TableStore

api_prefix = (
    settings.api_prefix
    if settings.api_prefix.startswith("/")
    else f"/{settings.api_prefix}"
    if settings.api_prefix
    else ""
)

logger = logging.getLogger("auction_reports")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

app = FastAPI(
    title=settings.app_name,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
    openapi_url=(f"{api_prefix}/openapi.json" if api_prefix else "/openapi.json")
    if settings.enable_docs
    else None,
)

# Expose logger for middleware without creating circular imports.
app.state.logger = logger

# INSIGHT_COMPOSER picks the composer; the compose endpoint answers 503 while
# this is None.
app.state.insight_composer = build_insight_composer(settings.insight_composer)

# Global exception handler - catches all unhandled exceptions and returns structured error
app.add_exception_handler(Exception, global_exception_handler)

# Request-level logging + request correlation id.
app.middleware("http")(request_logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=api_prefix)


def _env() -> str:
    return str(settings.environment or "dev").lower()


async def _create_tables_if_configured() -> None:
    # Schema is owned by Alembic; create_all is only a local-dev shortcut.
    if _env() == "test":
        return
    if not (settings.create_tables_on_start or _env() in {"dev", "development"}):
        return
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("tables_created")


async def _seed_reference_data() -> None:
    if _env() == "test" or not settings.seed_reference_data:
        return
    async with SessionLocal() as db:
        try:
            await seed_reference_data(TableStore(db), include_participants=_env() != "production")
        except (StoreOperationError, SQLAlchemyError) as e:
            # Database not ready yet (e.g., migrations pending) - don't block startup.
            logger.warning("reference_seed_failed", extra={"error": str(e)})


@app.on_event("startup")
async def _startup():
    logger.info(
        "runtime_config",
        extra={
            "pid": os.getpid(),
            "web_concurrency": os.getenv("WEB_CONCURRENCY"),
            "db_pool": POOL_CONFIG,
            "name_match_mode": settings.name_match_mode,
        },
    )
    await _create_tables_if_configured()
    await _seed_reference_data()


@app.on_event("shutdown")
async def _shutdown():
    await engine.dispose()


@app.get("/", tags=["meta"])
def root():
    docs_path = (
        (f"{api_prefix}/openapi.json" if api_prefix else "/openapi.json")
        if settings.enable_docs
        else None
    )
    return {"message": settings.app_name, "docs": docs_path}


@app.get("/health", tags=["meta"])
@app.get("/healthz", tags=["meta"])
def healthcheck():
    """Liveness check. Keep payload stable for monitoring systems."""

    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.environment,
        "time": utc_now_iso(),
        "uptime_seconds": round(uptime_seconds(), 2),
        "version": settings.build_version,
    }
