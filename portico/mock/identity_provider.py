"""Mock identity provider for local development without AWS Cognito.

Implements portico's IdentityProvider interface with in-memory storage.
"""

import secrets
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import structlog

from portico.core.identity_provider import IdentityProvider
from portico.exceptions import (
    CodeMismatchError,
    InvalidCredentialsError,
    InvalidPasswordError,
    PasswordResetRequiredError,
    TokenError,
    UserExistsError,
    UserNotConfirmedError,
    UserNotFoundError,
)
from portico.mock.token_verifier import MOCK_ISSUER, MockVerifier, encode_mock_token
from portico.models import AuthResult, CodeDelivery, UserProfile, UserStatus

log = structlog.get_logger()

# Mock confirmation code for development - intentionally simple
MOCK_CONFIRMATION_CODE = "123456"

MOCK_CLIENT_ID = "mock-client"
MINIMUM_PASSWORD_LENGTH = 8
TOKEN_LIFETIME_SECONDS = 3600


@dataclass
class _MockUser:
    email: str
    password: str
    first_name: str
    last_name: str
    sub: str
    status: UserStatus = UserStatus.UNCONFIRMED


class MockIdentityProvider(IdentityProvider):
    """
    Mock identity provider for local development.

    Every confirmation and reset code is MOCK_CONFIRMATION_CODE. Issued
    tokens are accepted by MockVerifier.

    Args:
        clock: Returns the current time in seconds
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._users: Dict[str, _MockUser] = {}
        self._refresh_tokens: Dict[str, str] = {}

    def _get(self, email: str, operation: str) -> _MockUser:
        user = self._users.get(email.lower())
        if user is None:
            raise UserNotFoundError(
                operation=operation, provider_code="UserNotFoundException"
            )
        return user

    def _check_password(self, password: str, operation: str) -> None:
        if len(password) < MINIMUM_PASSWORD_LENGTH:
            raise InvalidPasswordError(
                f"Password must have length greater than or equal to {MINIMUM_PASSWORD_LENGTH}",
                operation=operation,
                provider_code="InvalidPasswordException",
            )

    def _check_code(self, code: str, operation: str) -> None:
        if code != MOCK_CONFIRMATION_CODE:
            raise CodeMismatchError(operation=operation, provider_code="CodeMismatchException")

    def _issue_token(self, user: _MockUser, token_use: str) -> str:
        now = int(self._clock())
        claims = {
            "sub": user.sub,
            "iss": MOCK_ISSUER,
            "token_use": token_use,
            "email": user.email,
            "iat": now,
            "exp": now + TOKEN_LIFETIME_SECONDS,
        }
        if token_use == "access":
            claims["username"] = user.email
            claims["client_id"] = MOCK_CLIENT_ID
        else:
            claims["cognito:username"] = user.email
            claims["aud"] = MOCK_CLIENT_ID
        return encode_mock_token(claims)

    def _issue_tokens(self, user: _MockUser, refresh_token: Optional[str] = None) -> AuthResult:
        if refresh_token is None:
            refresh_token = secrets.token_urlsafe(32)
            self._refresh_tokens[refresh_token] = user.email
        return AuthResult(
            access_token=self._issue_token(user, "access"),
            id_token=self._issue_token(user, "id"),
            refresh_token=refresh_token,
            expires_in=TOKEN_LIFETIME_SECONDS,
        )

    # ==================== Registration ====================

    async def create_user(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> UserProfile:
        if email.lower() in self._users:
            raise UserExistsError(
                operation="create_user", provider_code="UsernameExistsException"
            )
        self._check_password(password, "create_user")

        user = _MockUser(
            email=email.lower(),
            password=password,
            first_name=first_name,
            last_name=last_name,
            sub=str(uuid.uuid4()),
        )
        self._users[user.email] = user
        log.info("mock_user_created", email=user.email)
        return UserProfile(
            email=email,
            first_name=first_name,
            last_name=last_name,
            user_id=user.sub,
            status=user.status,
        )

    async def confirm_user(self, email: str, confirmation_code: str) -> None:
        user = self._get(email, "confirm_user")
        self._check_code(confirmation_code, "confirm_user")
        user.status = UserStatus.CONFIRMED

    async def resend_confirmation_code(self, email: str) -> CodeDelivery:
        user = self._get(email, "resend_confirmation_code")
        return CodeDelivery(destination=user.email)

    # ==================== Authentication ====================

    async def login(self, email: str, password: str) -> AuthResult:
        user = self._users.get(email.lower())
        if user is None:
            raise UserNotFoundError(operation="login", provider_code="UserNotFoundException")
        if user.password != password:
            raise InvalidCredentialsError(operation="login", provider_code="NotAuthorizedException")
        if user.status == UserStatus.UNCONFIRMED:
            raise UserNotConfirmedError(
                operation="login", provider_code="UserNotConfirmedException"
            )
        if user.status == UserStatus.RESET_REQUIRED:
            raise PasswordResetRequiredError(
                operation="login", provider_code="PasswordResetRequiredException"
            )
        return self._issue_tokens(user)

    async def refresh_token(
        self,
        refresh_token: str,
        username: Optional[str] = None,
    ) -> AuthResult:
        email = self._refresh_tokens.get(refresh_token)
        user = self._users.get(email) if email else None
        if user is None:
            raise InvalidCredentialsError(
                "Invalid Refresh Token",
                operation="refresh_token",
                provider_code="NotAuthorizedException",
            )
        return self._issue_tokens(user, refresh_token=refresh_token)

    async def get_user(self, access_token: str) -> UserProfile:
        try:
            claims = MockVerifier(clock=self._clock).verify(access_token)
        except TokenError:
            raise InvalidCredentialsError(
                "Invalid Access Token",
                operation="get_user",
                provider_code="NotAuthorizedException",
            )
        user = self._get(claims.username or "", "get_user")
        return UserProfile(
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            user_id=user.sub,
            status=user.status,
            email_verified=user.status == UserStatus.CONFIRMED,
        )

    # ==================== Account Management ====================

    async def update_attributes(self, email: str, first_name: str, last_name: str) -> None:
        user = self._get(email, "update_attributes")
        user.first_name = first_name
        user.last_name = last_name

    async def forgot_password(self, email: str) -> None:
        user = self._get(email, "forgot_password")
        user.status = UserStatus.RESET_REQUIRED

    async def confirm_forgot_password(
        self,
        email: str,
        confirmation_code: str,
        new_password: str,
    ) -> None:
        user = self._get(email, "confirm_forgot_password")
        self._check_code(confirmation_code, "confirm_forgot_password")
        self._check_password(new_password, "confirm_forgot_password")
        user.password = new_password
        user.status = UserStatus.CONFIRMED

    async def delete_user(self, email: str) -> None:
        user = self._get(email, "delete_user")
        del self._users[user.email]
        self._refresh_tokens = {
            token: owner for token, owner in self._refresh_tokens.items() if owner != user.email
        }
        log.info("mock_user_deleted", email=user.email)
