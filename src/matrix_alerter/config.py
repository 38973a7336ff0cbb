"""Configuration management with Pydantic Settings.

This module provides the application settings, loaded from environment
variables at startup, and the Matrix provider configuration models, which
are usually read from a YAML file shared with the monitor that raises the
alerts.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from matrix_alerter.alerter.exceptions import ConfigurationInvalidError
from matrix_alerter.alerter.resolver import DEFAULT_HOMESERVER_URL, validate


def _scalar_to_str(v: Any) -> Any:
    # Empty YAML values (``access-token:``) load as None, unquoted digits as numbers
    if v is None:
        return ""
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class Override(BaseModel):
    """Alternate destination used for endpoints of a given group."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    group: str = ""
    homeserver_url: str = Field(default="", alias="homeserver-url")
    access_token: SecretStr = Field(default=SecretStr(""), alias="access-token")
    room_id: str = Field(default="", alias="internal-room-id")

    @field_validator("group", "homeserver_url", "access_token", "room_id", mode="before")
    @classmethod
    def coerce_empty(cls, v: Any) -> Any:
        """Read empty and numeric YAML values as strings."""
        return _scalar_to_str(v)


class ProviderState(BaseModel):
    """Matrix provider configuration: a default destination plus overrides.

    Parsing is deliberately permissive; use
    :func:`matrix_alerter.alerter.resolver.is_valid` to judge the result.

    Example:
        ```yaml
        homeserver-url: "https://matrix.example.org"
        access-token: "syt_..."
        internal-room-id: "!abcdef:example.org"
        overrides:
          - group: "core"
            access-token: "syt_..."
            internal-room-id: "!core:example.org"
        ```
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    homeserver_url: str = Field(default="", alias="homeserver-url")
    access_token: SecretStr = Field(default=SecretStr(""), alias="access-token")
    room_id: str = Field(default="", alias="internal-room-id")
    default_alert: dict[str, Any] | None = Field(default=None, alias="default-alert")
    overrides: tuple[Override, ...] = ()

    @field_validator("homeserver_url", "access_token", "room_id", mode="before")
    @classmethod
    def coerce_empty(cls, v: Any) -> Any:
        """Read empty and numeric YAML values as strings."""
        return _scalar_to_str(v)

    @field_validator("overrides", mode="before")
    @classmethod
    def coerce_overrides(cls, v: Any) -> Any:
        """Treat an empty ``overrides:`` key as no overrides."""
        return () if v is None else v


def load_provider_state(path: str | Path) -> ProviderState:
    """Load and validate a provider configuration file.

    The provider mapping may sit at the top level of the file or under
    ``alerting.matrix``, as in a monitor's main configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        The validated ProviderState.

    Raises:
        ConfigurationInvalidError: If the file is unreadable, malformed, or
            describes an invalid provider.
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationInvalidError(f"cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationInvalidError(f"invalid YAML in {path}: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("alerting"), dict):
        data = data["alerting"].get("matrix")
    if not isinstance(data, dict):
        raise ConfigurationInvalidError(f"{path} does not contain a matrix provider mapping")

    try:
        state = ProviderState.model_validate(data)
    except ValidationError as e:
        raise ConfigurationInvalidError(f"invalid provider configuration in {path}: {e}") from e

    validate(state)
    return state


class MatrixSettings(BaseSettings):
    """Matrix provider settings."""

    model_config = SettingsConfigDict(env_prefix="MATRIX_")

    config_file: Path | None = Field(
        default=None,
        alias="MATRIX_CONFIG_FILE",
        description="YAML file holding the provider configuration and overrides",
    )
    homeserver_url: str = Field(
        default="",
        alias="MATRIX_HOMESERVER_URL",
        description=f"Homeserver URL (defaults to {DEFAULT_HOMESERVER_URL})",
    )
    access_token: SecretStr | None = Field(
        default=None,
        alias="MATRIX_ACCESS_TOKEN",
        description="Access token of the bot user",
    )
    internal_room_id: str | None = Field(
        default=None,
        alias="MATRIX_INTERNAL_ROOM_ID",
        description="Room the bot user may post to",
    )

    @field_validator("homeserver_url")
    @classmethod
    def validate_homeserver_url(cls, v: str) -> str:
        """Validate homeserver URL format."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Homeserver URL must be an HTTP(S) endpoint")
        return v.rstrip("/")


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files.

    Example:
        ```python
        from matrix_alerter.config import get_settings

        settings = get_settings()
        state = settings.provider_state()
        ```
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    matrix: MatrixSettings = Field(default_factory=MatrixSettings)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    request_timeout: float = Field(
        default=10.0,
        alias="REQUEST_TIMEOUT",
        description="HTTP timeout in seconds for the homeserver request",
        gt=0,
    )

    def provider_state(self) -> ProviderState:
        """Build the validated provider configuration.

        Reads ``MATRIX_CONFIG_FILE`` when set, otherwise assembles a provider
        without overrides from the ``MATRIX_*`` variables.

        Raises:
            ConfigurationInvalidError: If the resulting provider is invalid.
        """
        if self.matrix.config_file is not None:
            return load_provider_state(self.matrix.config_file)

        state = ProviderState(
            homeserver_url=self.matrix.homeserver_url,
            access_token=self.matrix.access_token or SecretStr(""),
            room_id=self.matrix.internal_room_id or "",
        )
        validate(state)
        return state

    def redacted_summary(self) -> dict[str, str]:
        """Get a summary of settings with secrets redacted.

        Returns:
            Dictionary of settings with sensitive values masked.
        """
        return {
            "config_file": str(self.matrix.config_file or "(not set)"),
            "homeserver_url": self.matrix.homeserver_url or DEFAULT_HOMESERVER_URL,
            "access_token": "(set)" if self.matrix.access_token else "(not set)",
            "internal_room_id": self.matrix.internal_room_id or "(not set)",
            "log_level": self.log_level,
            "request_timeout": str(self.request_timeout),
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
