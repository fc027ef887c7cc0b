"""
Configuration for the Solidtime MCP server.

Values come from SOLIDTIME_* environment variables (or a local .env file) and
are frozen into a SolidtimeConfig that is passed explicitly to the client,
the timer controller and the server factory.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "http://localhost"


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


class SolidtimeConfig(BaseModel):
    """Connection settings for one Solidtime organization."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Solidtime instance URL, e.g. https://app.solidtime.io"
    )
    api_token: str = Field(
        ...,
        description="Personal access token (Settings > Personal Access Tokens)",
        min_length=1
    )
    organization_id: str = Field(
        ...,
        description="Organization ID, used in every API path",
        min_length=1
    )
    default_member_id: Optional[str] = Field(
        default=None,
        description="Member ID used by timer tools when none is given"
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("default_member_id")
    @classmethod
    def empty_member_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def api_url(self) -> str:
        return f"{self.base_url}/api/v1"


class EnvSettings(BaseSettings):
    """Raw SOLIDTIME_* environment, validated into SolidtimeConfig by load_config()."""

    model_config = SettingsConfigDict(
        env_prefix="SOLIDTIME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    base_url: str = DEFAULT_BASE_URL
    api_token: Optional[str] = None
    organization_id: Optional[str] = None
    default_member_id: Optional[str] = None
    log_level: str = "INFO"


def load_config(settings: Optional[EnvSettings] = None) -> SolidtimeConfig:
    """
    Build a SolidtimeConfig from the environment.

    Raises:
        ConfigError: If SOLIDTIME_API_TOKEN or SOLIDTIME_ORGANIZATION_ID is missing
    """
    settings = settings or EnvSettings()

    missing = []
    if not settings.api_token:
        missing.append("SOLIDTIME_API_TOKEN")
    if not settings.organization_id:
        missing.append("SOLIDTIME_ORGANIZATION_ID")
    if missing:
        raise ConfigError(
            f"Missing required environment variable(s): {', '.join(missing)}"
        )

    try:
        return SolidtimeConfig(
            base_url=settings.base_url,
            api_token=settings.api_token,
            organization_id=settings.organization_id,
            default_member_id=settings.default_member_id,
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
