"""FastAPI application factory."""

from __future__ import annotations

import time
import uuid
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from portico import __version__
from portico.api.errors import (
    NotAuthenticated,
    handle_not_authenticated,
    handle_provider_error,
    handle_unexpected_error,
    handle_validation_error,
)
from portico.api.routes import router as users_router
from portico.config import Settings
from portico.core.factory import PorticoFactory, create_factory_from_settings
from portico.exceptions import IdentityProviderError

log = structlog.get_logger()

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'self'; object-src 'none'",
}
HSTS_HEADER = "max-age=15552000; includeSubDomains"


def create_app(
    settings: Optional[Settings] = None,
    factory: Optional[PorticoFactory] = None,
) -> FastAPI:
    """Create the Portico API.

    Args:
        settings: Service settings. Defaults to Settings.from_env().
        factory: Component factory. Defaults to the one described by settings.

    Returns:
        The configured FastAPI application; users routes live under
        ``{settings.api_prefix}/users``.
    """
    settings = settings or Settings.from_env()
    factory = factory or create_factory_from_settings(settings)

    app = FastAPI(title="Portico", version=__version__)
    app.state.settings = settings
    app.state.factory = factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if settings.is_production:
            response.headers.setdefault("Strict-Transport-Security", HSTS_HEADER)
        return response

    @app.middleware("http")
    async def request_tracing(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        log.info("request_start", path=request.url.path, method=request.method)
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            response = await handle_unexpected_error(request, e)
        finally:
            log.info(
                "request_end",
                path=request.url.path,
                method=request.method,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(NotAuthenticated, handle_not_authenticated)
    app.add_exception_handler(IdentityProviderError, handle_provider_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(users_router, prefix=f"{settings.api_prefix}/users")

    return app
