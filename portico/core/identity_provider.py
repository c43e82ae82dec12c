"""Abstract identity provider interface.

This module defines the account-management operations the HTTP layer relies
on. Each operation is a single request to the identity provider; route
handlers only translate results and errors to HTTP.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from portico.models import AuthResult, CodeDelivery, UserProfile


class IdentityProvider(ABC):
    """Abstract identity provider for user accounts and authentication.

    Failures are raised as IdentityProviderError subclasses whose ``kind``
    identifies the provider error category.

    Implementations:
        - CognitoIdentityProvider: AWS Cognito
        - MockIdentityProvider: in-memory, for local development and tests
    """

    # ==================== Registration ====================

    @abstractmethod
    async def create_user(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> UserProfile:
        """Register a new user.

        Args:
            email: User's email address (used as the username)
            password: Initial password
            first_name: Stored as the given_name attribute
            last_name: Stored as the family_name attribute

        Returns:
            UserProfile for the new, unconfirmed user

        Raises:
            UserExistsError: If the email is already registered
            InvalidPasswordError: If the password violates the pool's policy
            IdentityProviderError: On other provider errors
        """

    @abstractmethod
    async def confirm_user(self, email: str, confirmation_code: str) -> None:
        """Confirm a registration with the code sent to the user.

        Raises:
            CodeMismatchError: If the code is wrong
            ExpiredCodeError: If the code has expired
            IdentityProviderError: On other provider errors
        """

    @abstractmethod
    async def resend_confirmation_code(self, email: str) -> CodeDelivery:
        """Send a new registration confirmation code.

        Returns:
            CodeDelivery describing where the code was sent
        """

    # ==================== Authentication ====================

    @abstractmethod
    async def login(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password.

        Returns:
            AuthResult with access, id and refresh tokens

        Raises:
            InvalidCredentialsError: If credentials are invalid
            UserNotConfirmedError: If the user hasn't confirmed their account
            UserNotFoundError: If the user doesn't exist
            PasswordResetRequiredError: If the user must reset their password
        """

    @abstractmethod
    async def refresh_token(
        self,
        refresh_token: str,
        username: Optional[str] = None,
    ) -> AuthResult:
        """Exchange a refresh token for new access and id tokens.

        Args:
            refresh_token: The refresh token from a previous login
            username: Needed only when the app client has a secret

        Returns:
            AuthResult; refresh_token is the one passed in

        Raises:
            InvalidCredentialsError: If the refresh token is invalid or expired
        """

    @abstractmethod
    async def get_user(self, access_token: str) -> UserProfile:
        """Fetch the profile of the user owning an access token.

        Raises:
            InvalidCredentialsError: If the access token is rejected
        """

    # ==================== Account Management ====================

    @abstractmethod
    async def update_attributes(
        self,
        email: str,
        first_name: str,
        last_name: str,
    ) -> None:
        """Update a user's name attributes.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """

    @abstractmethod
    async def forgot_password(self, email: str) -> None:
        """Start a password reset; the provider sends a code to the user.

        Raises:
            UserNotFoundError: If the user doesn't exist
            TooManyRequestsError: If rate limited
        """

    @abstractmethod
    async def confirm_forgot_password(
        self,
        email: str,
        confirmation_code: str,
        new_password: str,
    ) -> None:
        """Finish a password reset with the code sent to the user.

        Raises:
            CodeMismatchError: If the code is wrong
            ExpiredCodeError: If the code has expired
            InvalidPasswordError: If the password violates the pool's policy
        """

    @abstractmethod
    async def delete_user(self, email: str) -> None:
        """Delete a user.

        Raises:
            UserNotFoundError: If the user doesn't exist
        """
