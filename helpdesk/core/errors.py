from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("helpdesk.errors")


class HelpdeskError(Exception):
    """Base class for every error kind the core reports to callers."""

    code = "error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def details(self) -> dict[str, Any] | None:
        return None


class InvalidCredentials(HelpdeskError):
    code = "invalid_credentials"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "invalid email or password"


class SessionInvalidOrExpired(HelpdeskError):
    code = "session_invalid"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authorization required"


class PermissionDenied(HelpdeskError):
    code = "permission_denied"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "permission denied"

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(f"permission denied: {reason}" if reason else None)


class LastAdminInvariantViolation(PermissionDenied):
    code = "last_admin"

    def __init__(self) -> None:
        super().__init__("can't remove the last admin")


class SetupAlreadyDone(HelpdeskError):
    code = "setup_done"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "setup is already done"


class NotFound(HelpdeskError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f"{resource} not found")


class ValidationFailure(HelpdeskError):
    """A business-rule failure tied to one request field."""

    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str, validator: str, message: str | None = None) -> None:
        self.field = field
        self.validator = validator
        super().__init__(message or f"invalid {field}")

    @property
    def details(self) -> dict[str, Any]:
        return {"errors": [{"field": self.field, "validator": self.validator}]}


class EmailAlreadyInUse(ValidationFailure):
    def __init__(self) -> None:
        super().__init__("email", "unique", "email already in use")


class UsernameAlreadyInUse(ValidationFailure):
    def __init__(self) -> None:
        super().__init__("username", "unique", "username already in use")


class InvalidSearchQuery(ValidationFailure):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__("q", "search", "Invalid query")


class StorageFailure(HelpdeskError):
    code = "storage_failure"
    default_message = "storage operation failed"


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def helpdesk_exception_handler(request: Request, exc: HelpdeskError):
    if isinstance(exc, StorageFailure):
        logger.error(
            "request.storage_failure",
            exc_info=exc.__cause__ or exc,
            extra={"extra_data": {"path": request.url.path}},
        )
    return ErrorEnvelope(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    """Driver errors raised outside ``transaction()`` (read paths) get the same envelope."""

    failure = StorageFailure()
    failure.__cause__ = exc
    return await helpdesk_exception_handler(request, failure)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code="http_error",
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc):  # type: ignore[override]
    from fastapi.exceptions import RequestValidationError

    if isinstance(exc, RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in error.get("loc", ())[1:]), "validator": error.get("type")}
            for error in exc.errors()
        ]
        return ErrorEnvelope(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code="validation_error",
            message="Validation failed",
            details={"errors": errors},
        )
    raise exc
