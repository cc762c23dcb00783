from enum import Enum
from typing import Any, Optional


class ErrorCodes(str, Enum):
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    DATABASE_ERROR = "DATABASE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"


class AetherException(Exception):
    """Base for every error this service surfaces to its callers.

    ``details`` carries structured context (ids, roles) that is logged and
    returned alongside the message.
    """

    def __init__(self, message: str = "", details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BadRequestException(AetherException):
    pass


class UnauthorizedException(AetherException):
    pass


class ForbiddenException(AetherException):
    pass


class NotFoundException(AetherException):
    pass


class ConflictException(AetherException):
    pass


class DatabaseException(AetherException):
    pass


class UnavailableException(AetherException):
    pass


class ExternalServiceException(AetherException):
    pass


# Map exceptions to (status_code, message, error_code).
# A message of None means the exception's own message is returned.
EXCEPTION_MAP: dict[type[AetherException], tuple[int, Optional[str], ErrorCodes]] = {
    BadRequestException: (400, None, ErrorCodes.BAD_REQUEST),
    UnauthorizedException: (401, None, ErrorCodes.UNAUTHORIZED),
    ForbiddenException: (403, None, ErrorCodes.FORBIDDEN),
    NotFoundException: (404, None, ErrorCodes.NOT_FOUND),
    ConflictException: (409, None, ErrorCodes.CONFLICT),
    DatabaseException: (500, "Database error", ErrorCodes.DATABASE_ERROR),
    UnavailableException: (503, None, ErrorCodes.SERVICE_UNAVAILABLE),
    ExternalServiceException: (502, None, ErrorCodes.EXTERNAL_SERVICE_ERROR),
}
