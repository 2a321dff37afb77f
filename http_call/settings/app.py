"""Environment settings powered by Pydantic BaseSettings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from http_call.constants import DEFAULT_TIMEOUT_SECONDS


class HttpCallSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    user_agent: str | None = Field(default=None, validation_alias="HTTP_CALL_USER_AGENT")
    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0.0,
        le=600.0,
        validation_alias="HTTP_CALL_TIMEOUT",
    )
    https_proxy: str | None = Field(default=None, validation_alias="HTTPS_PROXY")
    http_proxy: str | None = Field(default=None, validation_alias="HTTP_PROXY")
    no_proxy: str | None = Field(default=None, validation_alias="NO_PROXY")


def get_settings() -> HttpCallSettings:
    """Get a settings instance."""
    return HttpCallSettings()
