from __future__ import annotations

import logging
import os
import time
import uuid
from collections import defaultdict, deque
from datetime import datetime, timezone
from threading import Lock
from typing import Callable, Deque

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import TimeoutError as SATimeoutError
from starlette.responses import Response

_APP_START_MONOTONIC = time.monotonic()

_LATENCY_WINDOW = int(os.getenv("LATENCY_METRICS_WINDOW", "200"))
_LATENCY_LOG_EVERY = int(os.getenv("LATENCY_METRICS_LOG_EVERY", "50"))
_LATENCY_LOCK = Lock()
_LATENCY_BUCKETS: dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=_LATENCY_WINDOW))

_SLOW_REQUEST_MS = int(os.getenv("SLOW_REQUEST_MS", "2000"))

_CRITICAL_ENDPOINTS: list[tuple[str, str, str]] = [
    ("POST", "/reports/draft", "reports.draft"),
    ("POST", "/reports/publish", "reports.publish"),
    ("GET", "/market-summary", "auctions.market_summary"),
]


def _critical_label_for(method: str, path: str) -> str | None:
    for m, suffix, label in _CRITICAL_ENDPOINTS:
        if method == m and path.endswith(suffix):
            return label
    return None


def _pool_status() -> str | None:
    from auction_reports.database import engine

    return engine.pool.status()


def _app_logger(request: Request) -> logging.Logger:
    return getattr(request.app.state, "logger", None) or logging.getLogger("auction_reports")


def _percentile(values: list[float], pct: float) -> float:
    if not values:
        return 0.0
    s = sorted(values)
    k = int(round((pct / 100.0) * (len(s) - 1)))
    k = max(0, min(k, len(s) - 1))
    return float(s[k])


def _record_latency(label: str | None, duration_ms: float, logger: logging.Logger) -> None:
    if not label:
        return
    with _LATENCY_LOCK:
        bucket = _LATENCY_BUCKETS[label]
        bucket.append(float(duration_ms))
        if len(bucket) < _LATENCY_LOG_EVERY or len(bucket) % _LATENCY_LOG_EVERY != 0:
            return
        values = list(bucket)
    logger.info(
        "http_latency",
        extra={
            "endpoint": label,
            "p50_ms": round(_percentile(values, 50), 2),
            "p95_ms": round(_percentile(values, 95), 2),
            "p99_ms": round(_percentile(values, 99), 2),
            "window": len(values),
        },
    )


def uptime_seconds() -> float:
    return max(0.0, time.monotonic() - _APP_START_MONOTONIC)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds") + "Z"


def _cors_headers(request: Request) -> dict[str, str]:
    # A 500 without CORS headers reaches the browser as an opaque CORS error.
    origin = request.headers.get("origin")
    if not origin:
        return {}
    from auction_reports.config import settings

    allowed = set(settings.cors_origins or [])
    if origin in allowed or "*" in allowed:
        return {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Credentials": "true",
            "Vary": "Origin",
        }
    return {}


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler that returns a structured error response.

    Unhandled exceptions are logged with their traceback; the client only sees
    a request id it can quote back.
    """
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())

    _app_logger(request).exception(
        "unhandled_exception",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "exception_type": type(exc).__name__,
        },
    )

    headers = {"X-Request-ID": request_id}
    headers.update(_cors_headers(request))

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error. Please try again later.",
            "request_id": request_id,
            "code": "INTERNAL_SERVER_ERROR",
        },
        headers=headers,
    )


async def request_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Request-level logging middleware.

    Adds/propagates X-Request-ID and measures request duration.
    Does not log request/response bodies (reports can be large).
    """

    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    logger = _app_logger(request)
    label = _critical_label_for(request.method, request.url.path)
    start = time.perf_counter()

    try:
        response: Response = await call_next(request)
    except SATimeoutError as exc:
        duration_ms = (time.perf_counter() - start) * 1000.0
        _record_latency(label, duration_ms, logger)
        logger.error(
            "db_pool_timeout",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "duration_ms": round(duration_ms, 2),
                "pool_status": _pool_status(),
                "error": str(exc),
            },
        )
        raise
    except Exception:
        duration_ms = (time.perf_counter() - start) * 1000.0
        _record_latency(label, duration_ms, logger)
        logger.exception(
            "http_request_failed",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "duration_ms": round(duration_ms, 2),
            },
        )
        raise

    duration_ms = (time.perf_counter() - start) * 1000.0
    _record_latency(label, duration_ms, logger)

    if duration_ms >= _SLOW_REQUEST_MS:
        logger.info(
            "slow_request",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "duration_ms": round(duration_ms, 2),
                "pool_status": _pool_status(),
            },
        )

    # Avoid noisy logging for liveness endpoints.
    if request.url.path not in {"/health", "/healthz"}:
        logger.info(
            "http_request",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "endpoint": label,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )

    response.headers.setdefault("X-Request-ID", request_id)
    return response
