"""Best-effort caller identity for request logs.

Authorization itself happens in ``core.deps``; this only decodes the bearer
token early so that rejected and unauthenticated requests still log who sent
them.
"""
import logging

from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.shiptrack.core.context import build_request_context
from app.shiptrack.core.security import decode_token

logger = logging.getLogger(__name__)


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization")
    if not header or not header.lower().startswith("bearer "):
        return None
    return header.split(" ", 1)[1].strip() or None


class IdentityContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request.state.user_id = None
        request.state.roles = None

        token = _bearer_token(request)
        if token:
            try:
                payload = decode_token(token)
            except JWTError:
                logger.debug("Ignoring undecodable bearer token")
            else:
                request.state.user_id = payload.get("sub")
                request.state.roles = payload.get("roles")

        request.state.context = build_request_context(
            user_id=request.state.user_id,
            roles=request.state.roles,
            trace_id=getattr(request.state, "trace_id", ""),
        )
        return await call_next(request)
