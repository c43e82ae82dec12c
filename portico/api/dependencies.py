"""FastAPI dependencies shared by the routes."""

from typing import Optional

from fastapi import Depends, Request

from portico.api.cookies import AUTH_TOKEN
from portico.api.errors import NotAuthenticated
from portico.config import Settings
from portico.core.identity_provider import IdentityProvider
from portico.core.token_verifier import TokenVerifier
from portico.exceptions import MalformedTokenError
from portico.gate import AuthGate, Unauthorized
from portico.models import VerifiedClaims


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.factory.create_identity_provider()


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.factory.create_auth_gate()


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.factory.create_token_verifier()


def request_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the auth cookie."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(AUTH_TOKEN) or None


# Must stay sync: verification may block on the JWKS fetch
def require_auth(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
) -> VerifiedClaims:
    outcome = gate.authenticate(request_token(request))
    if isinstance(outcome, Unauthorized):
        raise NotAuthenticated(outcome.message)
    return outcome.claims


def session_username(request: Request, verifier: TokenVerifier) -> Optional[str]:
    """Username named by the request's access token, read without verification.

    Only used to derive SECRET_HASH when refreshing, where Cognito checks the
    refresh token itself.
    """
    token = request_token(request)
    if not token:
        return None
    try:
        return verifier.get_unverified_claims(token).username
    except MalformedTokenError:
        return None
