"""Runtime settings loaded from the environment and an optional .env file."""

from __future__ import annotations

from typing import Annotated, Any, Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from portico.exceptions import ConfigurationError

DEFAULT_CORS_ORIGINS = {
    "dev": ["http://localhost:5173"],
    "test": ["http://localhost:5173"],
    "production": [],
}

PROVIDER_TYPES = ("cognito", "mock")


class Settings(BaseSettings):
    """Service configuration.

    Environment variables (case-insensitive, empty values ignored):
        IDENTITY_PROVIDER_TYPE: "cognito" (default) or "mock"
        AWS_REGION / AWS_DEFAULT_REGION, COGNITO_USER_POOL_ID, COGNITO_CLIENT_ID:
            required for cognito
        COGNITO_CLIENT_SECRET, COGNITO_ENDPOINT_URL, COGNITO_TOKEN_USE
        JWKS_TTL_SECONDS, JWKS_TIMEOUT_SECONDS, JWKS_MAX_STALENESS_SECONDS (0 disables),
        JWT_CLOCK_SKEW_SECONDS
        ENVIRONMENT, API_PREFIX, CORS_ORIGINS (comma separated), LOG_LEVEL, PORT

    Use Settings.from_env() in processes; keyword arguments by field name
    take precedence over the environment, which is how tests build it.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    provider_type: str = Field(default="cognito", validation_alias="IDENTITY_PROVIDER_TYPE")
    region: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("AWS_REGION", "AWS_DEFAULT_REGION")
    )
    user_pool_id: Optional[str] = Field(default=None, validation_alias="COGNITO_USER_POOL_ID")
    client_id: Optional[str] = Field(default=None, validation_alias="COGNITO_CLIENT_ID")
    client_secret: Optional[str] = Field(default=None, validation_alias="COGNITO_CLIENT_SECRET")
    endpoint_url: Optional[str] = Field(default=None, validation_alias="COGNITO_ENDPOINT_URL")
    token_use: Optional[str] = Field(default="access", validation_alias="COGNITO_TOKEN_USE")

    jwks_ttl_seconds: int = 24 * 60 * 60
    jwks_timeout_seconds: int = 5
    jwks_max_staleness_seconds: Optional[int] = 48 * 60 * 60
    clock_skew_seconds: int = Field(default=60, validation_alias="JWT_CLOCK_SKEW_SECONDS")

    environment: str = "dev"
    api_prefix: str = "/api/v1"
    cors_origins: Annotated[list[str], NoDecode] = Field(default_factory=list)
    log_level: str = "info"
    port: int = 8000

    @classmethod
    def from_env(cls, env_file: Optional[str] = ".env") -> Settings:
        """Build settings from environment variables and ``env_file``.

        Raises:
            ConfigurationError: If a required value is missing or a value is malformed
        """
        try:
            return cls(_env_file=env_file)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]).upper() for err in e.errors() if err["loc"]})
            raise ConfigurationError(f"Invalid settings: {', '.join(fields)}") from e

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("jwks_max_staleness_seconds")
    @classmethod
    def _zero_disables_staleness(cls, value: Optional[int]) -> Optional[int]:
        return value or None

    @model_validator(mode="after")
    def _check_provider(self) -> Settings:
        if self.provider_type not in PROVIDER_TYPES:
            raise ConfigurationError(
                f"Unknown IDENTITY_PROVIDER_TYPE '{self.provider_type}'. "
                f"Valid types: 'cognito', 'mock'"
            )
        if self.provider_type == "cognito":
            missing = [
                name
                for name, value in (
                    ("AWS_REGION", self.region),
                    ("COGNITO_USER_POOL_ID", self.user_pool_id),
                    ("COGNITO_CLIENT_ID", self.client_id),
                )
                if not value
            ]
            if missing:
                raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")
        if "cors_origins" not in self.model_fields_set:
            self.cors_origins = list(DEFAULT_CORS_ORIGINS.get(self.environment, []))
        return self

    @property
    def issuer(self) -> str:
        # e.g. https://cognito-idp.{region}.amazonaws.com/{pool_id}
        return f"https://cognito-idp.{self.region}.amazonaws.com/{self.user_pool_id}"

    @property
    def jwks_url(self) -> str:
        return f"{self.issuer}/.well-known/jwks.json"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_secure(self) -> bool:
        return self.is_production
