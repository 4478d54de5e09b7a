from pydantic import BaseModel


class ApiErrorResponse(BaseModel):
    code: str
    message: str
    details: dict | None = None
    trace_id: str | None = None


ERROR_RESPONSES = {
    400: {"model": ApiErrorResponse, "description": "Invalid state, conflict or rejected reference"},
    401: {"model": ApiErrorResponse, "description": "Missing or invalid token"},
    403: {"model": ApiErrorResponse, "description": "Caller role not allowed"},
    404: {"model": ApiErrorResponse, "description": "Resource not found"},
    409: {"model": ApiErrorResponse, "description": "Concurrent modification or lock timeout"},
    422: {"model": ApiErrorResponse, "description": "Request validation error"},
}
