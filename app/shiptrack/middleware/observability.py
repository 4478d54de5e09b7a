from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.shiptrack.core.db_timing import QueryClock
from app.shiptrack.core.logging import log_json
from app.shiptrack.core.metrics import metrics

logger = logging.getLogger("shiptrack.request")

# Copied from request.state when the inner layers set them.
_STATE_FIELDS = ("user_id", "error_code", "error_class")


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def _ms(value: float | None) -> float | None:
    return None if value is None else round(value, 2)


def build_request_log_payload(
    *,
    request: Request,
    response: Response | None,
    latency_ms: float,
    db_time_ms: float | None,
) -> dict:
    """One JSON line per request: route template, outcome and timings."""
    payload = {
        "event": "http_request",
        "trace_id": getattr(request.state, "trace_id", ""),
        "route": _route_template(request),
        "method": request.method,
        "status_code": response.status_code if response is not None else 500,
        "latency_ms": _ms(latency_ms),
        "db_time_ms": _ms(db_time_ms),
    }
    for field in _STATE_FIELDS:
        payload[field] = getattr(request.state, field, None)
    return payload


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        clock = QueryClock.start()
        started = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            db_time_ms = QueryClock.elapsed_ms()
            QueryClock.stop(clock)
            self._emit(request, response, elapsed_ms, db_time_ms)
        return response

    @staticmethod
    def _emit(request: Request, response: Response | None, elapsed_ms: float, db_time_ms: float | None) -> None:
        payload = build_request_log_payload(
            request=request, response=response, latency_ms=elapsed_ms, db_time_ms=db_time_ms
        )
        log_json(logger, payload)
        metrics.record_http_request(
            route=payload["route"],
            method=payload["method"],
            status_code=payload["status_code"],
            latency_ms=elapsed_ms,
        )
