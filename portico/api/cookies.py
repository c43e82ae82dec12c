"""Auth cookie management."""

from fastapi import Response

from portico.config import Settings
from portico.models import AuthResult

AUTH_TOKEN = "authToken"
REFRESH_TOKEN = "refreshToken"

COOKIE_MAX_AGE_SECONDS = 60 * 60 * 24 * 7


def _set_cookie(response: Response, name: str, value: str, settings: Settings) -> None:
    response.set_cookie(
        name,
        value,
        max_age=COOKIE_MAX_AGE_SECONDS,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


def set_auth_cookies(response: Response, tokens: AuthResult, settings: Settings) -> None:
    _set_cookie(response, AUTH_TOKEN, tokens.access_token, settings)
    if tokens.refresh_token:
        _set_cookie(response, REFRESH_TOKEN, tokens.refresh_token, settings)


def set_access_cookie(response: Response, tokens: AuthResult, settings: Settings) -> None:
    _set_cookie(response, AUTH_TOKEN, tokens.access_token, settings)


def clear_auth_cookies(response: Response, settings: Settings) -> None:
    for name in (AUTH_TOKEN, REFRESH_TOKEN):
        response.delete_cookie(
            name,
            path="/",
            httponly=True,
            secure=settings.cookie_secure,
            samesite="strict",
        )
