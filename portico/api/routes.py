"""User account routes, mounted under ``{api_prefix}/users``."""

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
import structlog

from portico.api.cookies import (
    REFRESH_TOKEN,
    clear_auth_cookies,
    set_access_cookie,
    set_auth_cookies,
)
from portico.api.dependencies import (
    get_identity_provider,
    get_settings,
    get_token_verifier,
    request_token,
    require_auth,
    session_username,
)
from portico.api.errors import provider_error_response
from portico.api.schemas import (
    ConfirmForgotPasswordRequest,
    ConfirmRequest,
    EmailRequest,
    LoginRequest,
    SignUpRequest,
    UpdateRequest,
)
from portico.config import Settings
from portico.core.identity_provider import IdentityProvider
from portico.core.token_verifier import TokenVerifier
from portico.exceptions import IdentityProviderError, ProviderErrorKind
from portico.models import VerifiedClaims

log = structlog.get_logger()

router = APIRouter(tags=["users"])


# **Get authenticated user**
@router.get("/me")
async def me(
    request: Request,
    claims: VerifiedClaims = Depends(require_auth),
    provider: IdentityProvider = Depends(get_identity_provider),
    settings: Settings = Depends(get_settings),
):
    try:
        user = await provider.get_user(request_token(request) or "")
    except IdentityProviderError as e:
        log.info("session_invalid", sub=claims.sub, code=e.provider_code)
        response = JSONResponse(status_code=401, content={"error": "Session expired or invalid"})
        clear_auth_cookies(response, settings)
        return response
    return {"user": user.to_dict()}


# **User signup**
@router.post("/")
async def sign_up(
    body: SignUpRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    user = await provider.create_user(
        email=body.user.email,
        password=body.user.password,
        first_name=body.user.first_name,
        last_name=body.user.last_name,
    )
    return {
        "user": {
            "email": user.email,
            "firstName": user.first_name,
            "lastName": user.last_name,
        }
    }


@router.post("/confirm")
async def confirm(
    body: ConfirmRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    await provider.confirm_user(body.user.email, body.user.confirmation_code)
    return {}


# **User login**
@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
    provider: IdentityProvider = Depends(get_identity_provider),
    settings: Settings = Depends(get_settings),
):
    tokens = await provider.login(body.user.email, body.user.password)
    set_auth_cookies(response, tokens, settings)
    return {}


@router.post("/refresh")
async def refresh(
    request: Request,
    response: Response,
    provider: IdentityProvider = Depends(get_identity_provider),
    verifier: TokenVerifier = Depends(get_token_verifier),
    settings: Settings = Depends(get_settings),
):
    refresh_token = request.cookies.get(REFRESH_TOKEN)
    if not refresh_token:
        return JSONResponse(status_code=401, content={"message": "No token provided"})

    try:
        tokens = await provider.refresh_token(
            refresh_token, username=session_username(request, verifier)
        )
    except IdentityProviderError as e:
        if e.kind != ProviderErrorKind.NOT_AUTHORIZED:
            return provider_error_response(e)
        expired = JSONResponse(status_code=401, content={"error": "Session expired or invalid"})
        clear_auth_cookies(expired, settings)
        return expired

    set_access_cookie(response, tokens, settings)
    return {}


# **User update**
@router.put("/")
async def update(
    body: UpdateRequest,
    claims: VerifiedClaims = Depends(require_auth),
    provider: IdentityProvider = Depends(get_identity_provider),
):
    # The body names the account; any authenticated caller may update any account
    await provider.update_attributes(
        email=body.user.email,
        first_name=body.user.first_name,
        last_name=body.user.last_name,
    )
    return {}


@router.delete("/")
async def delete(
    response: Response,
    claims: VerifiedClaims = Depends(require_auth),
    provider: IdentityProvider = Depends(get_identity_provider),
    settings: Settings = Depends(get_settings),
):
    await provider.delete_user(claims.username or claims.email or claims.sub)
    clear_auth_cookies(response, settings)
    return {}


# **User logout**
@router.post("/logout")
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    clear_auth_cookies(response, settings)
    return {"message": "Logged out successfully"}


@router.post("/forgot-password")
async def forgot_password(
    body: EmailRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    await provider.forgot_password(body.user.email)
    return {}


@router.post("/confirm-forgot-password")
async def confirm_forgot_password(
    body: ConfirmForgotPasswordRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    await provider.confirm_forgot_password(body.user.email, body.user.code, body.user.password)
    return {}


@router.post("/resend-confirmation-code")
async def resend_confirmation_code(
    body: EmailRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    await provider.resend_confirmation_code(body.user.email)
    return {}
