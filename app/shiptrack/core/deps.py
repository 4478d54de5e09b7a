from fastapi import Depends, Request
from jose import JWTError
from pydantic import ValidationError

from app.shiptrack.core.context import RequestContext, build_request_context
from app.shiptrack.core.error_catalog import AppError, ErrorCatalog
from app.shiptrack.core.metrics import metrics
from app.shiptrack.core.security import TokenData, decode_token, oauth2_scheme
from app.shiptrack.db.session import get_db
from app.shiptrack.db.unit_of_work import UnitOfWork


def get_current_token_data(token: str | None = Depends(oauth2_scheme)) -> TokenData:
    if not token:
        raise AppError(ErrorCatalog.INVALID_TOKEN, message="Missing bearer token")
    try:
        payload = decode_token(token)
        return TokenData(**payload)
    except (JWTError, ValidationError, TypeError) as exc:
        raise AppError(ErrorCatalog.INVALID_TOKEN) from exc


def require_request_context(
    request: Request,
    token_data: TokenData = Depends(get_current_token_data),
) -> RequestContext:
    trace_id = getattr(request.state, "trace_id", "")
    context = build_request_context(user_id=token_data.sub, roles=token_data.roles, trace_id=trace_id)
    request.state.context = context
    request.state.user_id = context.user_id
    return context


def require_roles(*allowed: str):
    def dependency(context: RequestContext = Depends(require_request_context)) -> RequestContext:
        if not context.has_any_role(allowed):
            metrics.increment_rbac_denied()
            raise AppError(ErrorCatalog.PERMISSION_DENIED, details={"required_roles": list(allowed)})
        return context

    return dependency


def get_unit_of_work(db=Depends(get_db)) -> UnitOfWork:
    return UnitOfWork(db)


__all__ = [
    "get_current_token_data",
    "require_request_context",
    "require_roles",
    "get_unit_of_work",
]
