"""Account operations backed by a Cognito user pool."""

from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Any, NoReturn, Optional

import boto3
import structlog
from botocore.exceptions import ClientError

from portico.core.identity_provider import IdentityProvider
from portico.exceptions import ERRORS_BY_KIND, IdentityProviderError, ProviderErrorKind
from portico.models import AuthResult, CodeDelivery, UserProfile, UserStatus

log = structlog.get_logger()

# Standard attributes for the user's name
FIRST_NAME_ATTRIBUTE = "given_name"
LAST_NAME_ATTRIBUTE = "family_name"

# Cognito exception names by error category
PROVIDER_ERROR_KINDS: dict[str, ProviderErrorKind] = {
    "UserNotConfirmedException": ProviderErrorKind.USER_NOT_CONFIRMED,
    "NotAuthorizedException": ProviderErrorKind.NOT_AUTHORIZED,
    "UserNotFoundException": ProviderErrorKind.USER_NOT_FOUND,
    "PasswordResetRequiredException": ProviderErrorKind.PASSWORD_RESET_REQUIRED,
    "UsernameExistsException": ProviderErrorKind.USER_EXISTS,
    "AliasExistsException": ProviderErrorKind.USER_EXISTS,
    "CodeMismatchException": ProviderErrorKind.CODE_MISMATCH,
    "ExpiredCodeException": ProviderErrorKind.EXPIRED_CODE,
    "InvalidPasswordException": ProviderErrorKind.INVALID_PASSWORD,
    "InvalidParameterException": ProviderErrorKind.INVALID_PARAMETER,
    "LimitExceededException": ProviderErrorKind.TOO_MANY_REQUESTS,
    "TooManyRequestsException": ProviderErrorKind.TOO_MANY_REQUESTS,
    "TooManyFailedAttemptsException": ProviderErrorKind.TOO_MANY_REQUESTS,
}


def secret_hash(username: str, client_id: str, client_secret: str) -> str:
    """Compute the SECRET_HASH Cognito requires for clients with a secret."""
    msg = f"{username}{client_id}".encode("utf-8")
    digest = hmac.new(client_secret.encode("utf-8"), msg, digestmod=hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def _provider_error(e: ClientError, operation: str) -> IdentityProviderError:
    """Translate a botocore ClientError into the matching IdentityProviderError."""
    error = e.response.get("Error", {})
    code = error.get("Code", "")
    kind = PROVIDER_ERROR_KINDS.get(code, ProviderErrorKind.UNKNOWN)
    return ERRORS_BY_KIND[kind](
        message=error.get("Message") or None,
        operation=operation,
        provider_code=code or None,
    )


class CognitoIdentityProvider(IdentityProvider):
    """IdentityProvider that makes one cognito-idp call per operation.

    Users are keyed by email; first and last name are stored in the standard
    given_name and family_name attributes.

    Args:
        region: AWS region for Cognito
        user_pool_id: The user pool holding the accounts
        client_id: App client used for the client-side flows
        client_secret: App client secret; enables SECRET_HASH on every client call
        endpoint_url: Alternate cognito-idp endpoint, e.g. LocalStack

    Normally obtained from CognitoFactory.create_identity_provider().
    """

    def __init__(
        self,
        region: str,
        user_pool_id: str,
        client_id: str,
        client_secret: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ):
        self.region = region
        self.user_pool_id = user_pool_id
        self.client_id = client_id
        self._client_secret = client_secret
        self._endpoint_url = endpoint_url

        client_kwargs: dict[str, Any] = {"region_name": region}
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        self._client = boto3.client("cognito-idp", **client_kwargs)

    def _secret_hash(self, username: str) -> Optional[str]:
        if not self._client_secret:
            return None
        return secret_hash(username, self.client_id, self._client_secret)

    def _with_secret_hash(self, params: dict[str, Any], username: str) -> dict[str, Any]:
        digest = self._secret_hash(username)
        if digest:
            params["SecretHash"] = digest
        return params

    def _fail(self, e: ClientError, operation: str, **context: Any) -> NoReturn:
        error = _provider_error(e, operation)
        if error.kind == ProviderErrorKind.UNKNOWN:
            log.error(f"cognito_{operation}_error", error=str(e), **context)
        else:
            log.info(f"cognito_{operation}_rejected", code=error.provider_code, **context)
        raise error from e

    @staticmethod
    def _parse_user_attributes(attributes: list[dict[str, str]]) -> dict[str, Any]:
        """Parse Cognito user attributes into a dictionary."""
        return {attr["Name"]: attr["Value"] for attr in attributes}

    @staticmethod
    def _parse_code_delivery(details: dict[str, Any]) -> CodeDelivery:
        return CodeDelivery(
            destination=details.get("Destination", ""),
            delivery_medium=details.get("DeliveryMedium", "EMAIL"),
            attribute_name=details.get("AttributeName", "email"),
        )

    @staticmethod
    def _auth_result(result: dict[str, Any], refresh_token: str = "") -> AuthResult:
        return AuthResult(
            access_token=result.get("AccessToken", ""),
            id_token=result.get("IdToken", ""),
            refresh_token=result.get("RefreshToken", refresh_token),
            expires_in=result.get("ExpiresIn", 3600),
            token_type=result.get("TokenType", "Bearer"),
        )

    # ==================== Registration ====================

    async def create_user(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> UserProfile:
        """Sign up a new user with the app client."""
        params = self._with_secret_hash(
            {
                "ClientId": self.client_id,
                "Username": email,
                "Password": password,
                "UserAttributes": [
                    {"Name": "email", "Value": email},
                    {"Name": FIRST_NAME_ATTRIBUTE, "Value": first_name},
                    {"Name": LAST_NAME_ATTRIBUTE, "Value": last_name},
                ],
            },
            email,
        )

        try:
            response = self._client.sign_up(**params)
        except ClientError as e:
            self._fail(e, "create_user", email=email)

        log.info("cognito_user_created", email=email, confirmed=response.get("UserConfirmed"))
        return UserProfile(
            email=email,
            first_name=first_name,
            last_name=last_name,
            user_id=response.get("UserSub"),
            status=UserStatus.CONFIRMED if response.get("UserConfirmed") else UserStatus.UNCONFIRMED,
        )

    async def confirm_user(self, email: str, confirmation_code: str) -> None:
        """Confirm a sign up with the emailed code."""
        params = self._with_secret_hash(
            {
                "ClientId": self.client_id,
                "Username": email,
                "ConfirmationCode": confirmation_code,
            },
            email,
        )
        try:
            self._client.confirm_sign_up(**params)
        except ClientError as e:
            self._fail(e, "confirm_user", email=email)
        log.info("cognito_user_confirmed", email=email)

    async def resend_confirmation_code(self, email: str) -> CodeDelivery:
        """Resend the sign up confirmation code."""
        params = self._with_secret_hash({"ClientId": self.client_id, "Username": email}, email)
        try:
            response = self._client.resend_confirmation_code(**params)
        except ClientError as e:
            self._fail(e, "resend_confirmation_code", email=email)
        log.info("cognito_confirmation_code_resent", email=email)
        return self._parse_code_delivery(response.get("CodeDeliveryDetails", {}))

    # ==================== Authentication ====================

    async def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with USER_PASSWORD_AUTH."""
        auth_params = {"USERNAME": email, "PASSWORD": password}
        digest = self._secret_hash(email)
        if digest:
            auth_params["SECRET_HASH"] = digest

        try:
            resp = self._client.initiate_auth(
                ClientId=self.client_id,
                AuthFlow="USER_PASSWORD_AUTH",
                AuthParameters=auth_params,
            )
        except ClientError as e:
            self._fail(e, "login", email=email)

        result = resp.get("AuthenticationResult") or {}
        if not result.get("AccessToken"):
            # Challenges (MFA, NEW_PASSWORD_REQUIRED) are not supported by this service
            log.warning("cognito_login_challenge", email=email, challenge=resp.get("ChallengeName"))
            raise IdentityProviderError("Missing authentication token", "login")

        log.info("user_authenticated", email=email)
        return self._auth_result(result)

    async def refresh_token(
        self,
        refresh_token: str,
        username: Optional[str] = None,
    ) -> AuthResult:
        """Refresh access and id tokens using a refresh token."""
        auth_params = {"REFRESH_TOKEN": refresh_token}
        if self._client_secret and not username:
            log.warning("refresh_without_username", client_id=self.client_id)
        digest = self._secret_hash(username) if username else None
        if digest:
            auth_params["SECRET_HASH"] = digest

        try:
            resp = self._client.initiate_auth(
                ClientId=self.client_id,
                AuthFlow="REFRESH_TOKEN_AUTH",
                AuthParameters=auth_params,
            )
        except ClientError as e:
            self._fail(e, "refresh_token")

        log.info("tokens_refreshed")
        # Refresh token is not returned on refresh
        return self._auth_result(resp.get("AuthenticationResult") or {}, refresh_token)

    async def get_user(self, access_token: str) -> UserProfile:
        """Get the profile of the access token's owner."""
        try:
            response = self._client.get_user(AccessToken=access_token)
        except ClientError as e:
            self._fail(e, "get_user")

        attrs = self._parse_user_attributes(response.get("UserAttributes", []))
        return UserProfile(
            email=attrs.get("email", response.get("Username", "")),
            first_name=attrs.get(FIRST_NAME_ATTRIBUTE),
            last_name=attrs.get(LAST_NAME_ATTRIBUTE),
            user_id=attrs.get("sub"),
            status=UserStatus.CONFIRMED,
            email_verified=attrs.get("email_verified", "false").lower() == "true",
            attributes=attrs,
        )

    # ==================== Account Management ====================

    async def update_attributes(self, email: str, first_name: str, last_name: str) -> None:
        """Update a user's name attributes."""
        try:
            self._client.admin_update_user_attributes(
                UserPoolId=self.user_pool_id,
                Username=email,
                UserAttributes=[
                    {"Name": FIRST_NAME_ATTRIBUTE, "Value": first_name},
                    {"Name": LAST_NAME_ATTRIBUTE, "Value": last_name},
                ],
            )
        except ClientError as e:
            self._fail(e, "update_attributes", email=email)
        log.info("cognito_attributes_updated", email=email)

    async def forgot_password(self, email: str) -> None:
        """Reset a user's password; Cognito emails them a reset code."""
        try:
            self._client.admin_reset_user_password(
                UserPoolId=self.user_pool_id,
                Username=email,
            )
        except ClientError as e:
            self._fail(e, "forgot_password", email=email)
        log.info("password_reset_initiated", email=email)

    async def confirm_forgot_password(
        self,
        email: str,
        confirmation_code: str,
        new_password: str,
    ) -> None:
        """Confirm password reset with verification code."""
        params = self._with_secret_hash(
            {
                "ClientId": self.client_id,
                "Username": email,
                "ConfirmationCode": confirmation_code,
                "Password": new_password,
            },
            email,
        )
        try:
            self._client.confirm_forgot_password(**params)
        except ClientError as e:
            self._fail(e, "confirm_forgot_password", email=email)
        log.info("password_reset_confirmed", email=email)

    async def delete_user(self, email: str) -> None:
        """Delete a user from the pool."""
        try:
            self._client.admin_delete_user(
                UserPoolId=self.user_pool_id,
                Username=email,
            )
        except ClientError as e:
            self._fail(e, "delete_user", email=email)
        log.info("cognito_user_deleted", email=email)
