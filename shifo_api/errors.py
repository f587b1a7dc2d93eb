"""Application error taxonomy mapped onto HTTP status codes"""

from typing import Optional

from fastapi import HTTPException


class AppError(HTTPException):
    """HTTPException carrying a machine-readable error code for the response envelope"""

    def __init__(self, message: str, status_code: int = 400, code: Optional[str] = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.code = code


def bad_request(message: str = "Bad request") -> AppError:
    return AppError(message, 400, "BAD_REQUEST")


def validation_error(message: str = "Validation failed") -> AppError:
    return AppError(message, 400, "VALIDATION_ERROR")


def unauthorized(message: str = "Unauthorized") -> AppError:
    return AppError(message, 401, "UNAUTHORIZED")


def forbidden(message: str = "Forbidden") -> AppError:
    return AppError(message, 403, "FORBIDDEN")


def not_found(message: str = "Not found") -> AppError:
    return AppError(message, 404, "NOT_FOUND")


def conflict(message: str = "Conflict") -> AppError:
    return AppError(message, 409, "CONFLICT")


def service_unavailable(message: str = "Service unavailable") -> AppError:
    return AppError(message, 503, "SERVICE_UNAVAILABLE")


def bad_gateway(message: str = "Upstream service failed") -> AppError:
    return AppError(message, 502, "BAD_GATEWAY")


# Default codes for plain HTTPExceptions raised by FastAPI itself
STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    429: "RATE_LIMITED",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
}
