import logging
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from app.shiptrack.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition
from app.shiptrack.core.metrics import metrics

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}

# Driver messages for lock waits across SQLite, PostgreSQL and MySQL.
_LOCK_TIMEOUT_MARKERS = (
    "lock timeout",
    "lock wait timeout",
    "deadlock detected",
    "database is locked",
    "could not obtain lock",
)

_LOCATION_PREFIXES = {"body", "query", "path", "header"}


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "")


def _remember_error(request: Request, code: str, exc: Exception) -> None:
    request.state.error_code = code
    request.state.error_class = exc.__class__.__name__


def _is_lock_timeout(exc: Exception) -> bool:
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _LOCK_TIMEOUT_MARKERS)


def _json_safe(value):
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def _validation_errors(exc: RequestValidationError) -> dict:
    rows = []
    for error in exc.errors():
        loc = list(error.get("loc", []))
        field = ".".join(str(part) for part in loc if part not in _LOCATION_PREFIXES)
        rows.append(
            {
                "field": field or None,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error"),
                "loc": loc,
                "input": _json_safe(error.get("input")),
            }
        )
    return {"errors": rows}


def error_response(code: str, message: str, details: object, trace_id: str, status_code: int) -> JSONResponse:
    body = {"code": code, "message": message, "details": _json_safe(details), "trace_id": trace_id}
    return JSONResponse(status_code=status_code, content=body)


def _from_catalog(request: Request, error: ErrorDefinition, exc: Exception, details: object = None) -> JSONResponse:
    _remember_error(request, error.code, exc)
    return error_response(error.code, error.message, details, _trace_id(request), error.status_code)


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        _remember_error(request, exc.error.code, exc)
        return error_response(exc.error.code, exc.message, exc.details, _trace_id(request), exc.error.status_code)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        code = _HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
        _remember_error(request, code, exc)
        message = "HTTP error" if exc.detail is None else str(exc.detail)
        return error_response(code, message, None, _trace_id(request), exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _from_catalog(request, ErrorCatalog.REQUEST_VALIDATION_ERROR, exc, _validation_errors(exc))

    @app.exception_handler(StaleDataError)
    async def stale_data_handler(request: Request, exc: StaleDataError):
        logger.warning("stale write rejected on %s", request.url.path)
        return _from_catalog(request, ErrorCatalog.CONCURRENT_MODIFICATION, exc, {"type": "StaleDataError"})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        if _is_lock_timeout(exc):
            metrics.increment_lock_wait_timeout()
            return _from_catalog(request, ErrorCatalog.LOCK_TIMEOUT, exc, {"type": exc.__class__.__name__})
        logger.exception("unhandled error on %s (trace_id=%s)", request.url.path, _trace_id(request))
        return _from_catalog(request, ErrorCatalog.INTERNAL_ERROR, exc, {"type": exc.__class__.__name__})
