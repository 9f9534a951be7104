"""
Application errors raised by the workflow services and the entitlement
resolver.

Every error here is terminal: the operation was refused and the data is
unchanged. The API layer renders them with the HTTP status carried by the
class, see `register_exception_handlers`.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class PortalError(Exception):
    status_code = 400
    code = "portal_error"

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class AuthenticationRequired(PortalError):
    status_code = 401
    code = "authentication_required"


class PermissionDenied(PortalError):
    status_code = 403
    code = "permission_denied"


class AccessDenied(PermissionDenied):
    """A document entitlement check came back Denied; `code` is the reason."""

    def __init__(self, reason: str, message: str = None):
        super().__init__(message or f"Access denied: {reason}")
        self.code = reason


class EmailMismatch(PortalError):
    status_code = 403
    code = "email_mismatch"


class NotFound(PortalError):
    status_code = 404
    code = "not_found"


class Conflict(PortalError):
    status_code = 409
    code = "conflict"


class AlreadyResolved(Conflict):
    code = "already_resolved"


class InvalidState(Conflict):
    code = "invalid_state"


class Expired(PortalError):
    status_code = 410
    code = "expired"


class InvalidRequest(PortalError):
    status_code = 422
    code = "invalid_request"


async def portal_error_handler(request: Request, exc: PortalError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(PortalError, portal_error_handler)
