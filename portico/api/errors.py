"""Translation of Portico errors into HTTP responses."""

from __future__ import annotations

from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

from portico.api.cookies import clear_auth_cookies
from portico.exceptions import IdentityProviderError, ProviderErrorKind

log = structlog.get_logger()

# One status per provider error category
PROVIDER_ERROR_STATUS: dict[ProviderErrorKind, int] = {
    ProviderErrorKind.USER_NOT_CONFIRMED: 403,
    ProviderErrorKind.NOT_AUTHORIZED: 400,
    ProviderErrorKind.USER_NOT_FOUND: 404,
    ProviderErrorKind.PASSWORD_RESET_REQUIRED: 403,
    ProviderErrorKind.USER_EXISTS: 409,
    ProviderErrorKind.CODE_MISMATCH: 400,
    ProviderErrorKind.EXPIRED_CODE: 400,
    ProviderErrorKind.INVALID_PASSWORD: 400,
    ProviderErrorKind.INVALID_PARAMETER: 400,
    ProviderErrorKind.TOO_MANY_REQUESTS: 429,
    ProviderErrorKind.UNKNOWN: 400,
}


class NotAuthenticated(Exception):
    """Raised by the auth dependency when the auth gate rejects a request."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def provider_error_response(error: IdentityProviderError) -> JSONResponse:
    return JSONResponse(
        status_code=PROVIDER_ERROR_STATUS[error.kind],
        content={"error": error.message, "type": error.provider_code or error.kind.value},
    )


async def handle_provider_error(request: Request, exc: IdentityProviderError) -> JSONResponse:
    return provider_error_response(exc)


async def handle_not_authenticated(request: Request, exc: NotAuthenticated) -> JSONResponse:
    response = JSONResponse(status_code=401, content={"message": exc.message})
    clear_auth_cookies(response, request.app.state.settings)
    return response


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg', 'invalid value')}" if location else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"error": message, "statusCode": 400, "requestId": _request_id(request)},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "request_error",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "statusCode": 500,
            "requestId": _request_id(request),
        },
    )
