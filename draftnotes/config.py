"""Configuration management for the draft notes client."""

from typing import cast

from pydantic import AnyHttpUrl, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Client settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_prefix="DRAFTNOTES_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    gitlab_api_base: AnyHttpUrl = Field(
        default=cast("AnyHttpUrl", "https://gitlab.com/api/v4"),
        description="Base URL for the GitLab REST API.",
    )
    gitlab_token: SecretStr = Field(
        default=SecretStr(""),
        description="Personal access token used to authenticate GitLab API calls.",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Per-request timeout in seconds.",
    )
    max_attempts: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Maximum number of attempts for rate limited, failed or unreachable requests.",
    )

    @model_validator(mode="after")
    def _enforce_required_fields(self) -> "ClientSettings":
        if not self.gitlab_token.get_secret_value():
            msg = "DRAFTNOTES_GITLAB_TOKEN must be configured"
            raise ValueError(msg)
        return self


def load_settings() -> ClientSettings:
    """Load client settings from supported sources."""
    return ClientSettings()
