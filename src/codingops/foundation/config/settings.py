"""Environment-based configuration using pydantic-settings.

Values resolve from explicit keyword arguments, then environment variables
(and a ``.env`` file), then the defaults below. Settings are frozen once
built; use ``with_updates`` to derive a new validated copy.

Example:
    >>> settings = load_settings(personal_access_token="pat-xxx")
    >>> settings.cache_ttl
    300.0

    # Or with environment variables:
    # CODING_PERSONAL_ACCESS_TOKEN=pat-xxx
    # CODING_API_TIMEOUT=60
    # CODING_ENABLE_CACHE=true
"""

from __future__ import annotations

from typing import Literal

from pydantic import (
    AliasChoices,
    Field,
    HttpUrl,
    NonNegativeInt,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..errors import ConfigError

VERSION = "0.1.0"
DEFAULT_API_BASE_URL = "https://e.coding.net/open-api"

_HTTP_URL: TypeAdapter[HttpUrl] = TypeAdapter(HttpUrl)


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CODING_LOG_",
        extra="ignore",
        frozen=True,
    )

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v

    @field_validator("format", mode="before")
    @classmethod
    def _lower_format(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v


class CodingSettings(BaseSettings):
    """Connection settings for the CODING Open API.

    Example environment variables:
        CODING_API_BASE_URL=https://e.coding.net/open-api
        CODING_PERSONAL_ACCESS_TOKEN=...
        CODING_API_TIMEOUT=30
        CODING_API_RETRY_ATTEMPTS=3
        CODING_MAX_CONCURRENT_REQUESTS=10
        CODING_ENABLE_CACHE=true
        CODING_CACHE_TTL=300
    """

    model_config = SettingsConfigDict(
        env_prefix="CODING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        validate_default=True,
        populate_by_name=True,
    )

    api_base_url: str = Field(default=DEFAULT_API_BASE_URL, description="Open API endpoint")
    personal_access_token: SecretStr = Field(..., description="Personal access token")
    timeout: PositiveFloat = Field(
        default=30.0,
        validation_alias=AliasChoices("CODING_API_TIMEOUT"),
        description="Per-request transport timeout in seconds",
    )
    retry_attempts: NonNegativeInt = Field(
        default=3,
        validation_alias=AliasChoices("CODING_API_RETRY_ATTEMPTS"),
        description="Total attempts per network call (0 behaves as 1)",
    )
    max_concurrent_requests: PositiveInt = Field(default=10, description="Max in-flight network calls")
    enable_cache: bool = Field(default=False, description="Cache read-only actions")
    cache_ttl: PositiveFloat = Field(default=300.0, description="Default cache TTL in seconds")
    retry_base_delay: PositiveFloat = Field(default=1.0, description="Delay before the first retry in seconds")
    acquire_timeout: PositiveFloat | None = Field(default=None, description="Max wait for a concurrency slot")
    user_agent: str = f"codingops/{VERSION}"

    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("api_base_url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        v = v.strip()
        _HTTP_URL.validate_python(v)
        return v

    @field_validator("personal_access_token")
    @classmethod
    def _require_token(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("personal access token must not be empty")
        return v

    @field_serializer("personal_access_token", when_used="json")
    def _mask_token(self, v: SecretStr) -> str:
        secret = v.get_secret_value()
        return f"{secret[:4]}...{secret[-4:]}" if len(secret) > 8 else "***"

    def auth_headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        return {
            "Authorization": f"token {self.personal_access_token.get_secret_value()}",
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
        }

    def with_updates(self, **changes: object) -> CodingSettings:
        """Return a new validated settings object with ``changes`` applied.

        Raises:
            ConfigError: if the result fails validation
        """
        data = self.model_dump(exclude={"logging"})
        data["personal_access_token"] = self.personal_access_token.get_secret_value()
        data["logging"] = self.logging
        data.update(changes)
        return load_settings(**data)


def load_settings(**overrides: object) -> CodingSettings:
    """Build settings from explicit overrides, environment and defaults.

    None-valued overrides are ignored so callers can pass optional arguments
    straight through. Field names are keyed by their env alias so an explicit
    value always outranks the same variable read from the environment.

    Raises:
        ConfigError: if any field fails validation
    """
    explicit = {_input_key(k): v for k, v in overrides.items() if v is not None}
    try:
        return CodingSettings(**explicit)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def _input_key(name: str) -> str:
    field = CodingSettings.model_fields.get(name)
    alias = field.validation_alias if field is not None else None
    if isinstance(alias, AliasChoices) and isinstance(alias.choices[0], str):
        return alias.choices[0]
    return name
