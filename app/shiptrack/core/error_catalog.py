from dataclasses import dataclass
from fastapi import status


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int


class ErrorCatalog:
    INVALID_TOKEN = ErrorDefinition("INVALID_TOKEN", "Invalid token", status.HTTP_401_UNAUTHORIZED)
    PERMISSION_DENIED = ErrorDefinition(
        "PERMISSION_DENIED",
        "Permission denied",
        status.HTTP_403_FORBIDDEN,
    )
    NOT_FOUND = ErrorDefinition("NOT_FOUND", "Resource not found", status.HTTP_404_NOT_FOUND)
    INVALID_STATE = ErrorDefinition(
        "INVALID_STATE",
        "Operation not allowed in the current status",
        status.HTTP_400_BAD_REQUEST,
    )
    REFERENCE_NOT_FOUND = ErrorDefinition(
        "REFERENCE_NOT_FOUND",
        "Referenced record not found",
        status.HTTP_400_BAD_REQUEST,
    )
    CONFLICT = ErrorDefinition("CONFLICT", "Conflicting state", status.HTTP_400_BAD_REQUEST)
    VALIDATION_ERROR = ErrorDefinition(
        "VALIDATION_ERROR",
        "Validation error",
        status.HTTP_400_BAD_REQUEST,
    )
    REQUEST_VALIDATION_ERROR = ErrorDefinition(
        "REQUEST_VALIDATION_ERROR",
        "Request validation error",
        status.HTTP_422_UNPROCESSABLE_ENTITY,
    )
    CONCURRENT_MODIFICATION = ErrorDefinition(
        "CONCURRENT_MODIFICATION",
        "Record was modified by another request",
        status.HTTP_409_CONFLICT,
    )
    LOCK_TIMEOUT = ErrorDefinition(
        "LOCK_TIMEOUT",
        "Lock wait timeout",
        status.HTTP_409_CONFLICT,
    )
    DB_UNAVAILABLE = ErrorDefinition(
        "DB_UNAVAILABLE",
        "Database unavailable",
        status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None, message: str | None = None):
        self.error = error
        self.details = details
        self.message = message or error.message
        super().__init__(self.message)


def not_found(entity: str, entity_id) -> AppError:
    return AppError(
        ErrorCatalog.NOT_FOUND,
        details={"entity": entity, "id": str(entity_id)},
        message=f"{entity} not found",
    )


def invalid_state(entity: str, current, required) -> AppError:
    required_values = [str(value) for value in required]
    return AppError(
        ErrorCatalog.INVALID_STATE,
        details={"entity": entity, "current": str(current), "required": required_values},
        message=f"{entity} is {current}; required {' or '.join(required_values)}",
    )


def reference_not_found(entity: str, entity_id, *, field: str) -> AppError:
    return AppError(
        ErrorCatalog.REFERENCE_NOT_FOUND,
        details={"entity": entity, "field": field, "id": str(entity_id)},
        message=f"{entity} {entity_id} not found",
    )
