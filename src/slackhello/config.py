"""Configuration and credential validation for slackhello."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError
from pydantic_settings import BaseSettings, SettingsConfigDict

from slackhello.errors import ConfigurationError, InvalidCredentialError, MissingCredentialError

APP_TOKEN_PREFIX = "xapp-"
BOT_TOKEN_PREFIX = "xoxb-"

LogFormat = Literal["text", "json", "rich"]

_CREDENTIALS: dict[str, tuple[str, str]] = {
    "slack_app_token": ("SLACK_APP_TOKEN", APP_TOKEN_PREFIX),
    "slack_bot_token": ("SLACK_BOT_TOKEN", BOT_TOKEN_PREFIX),
}


class Settings(BaseSettings):
    """Runtime settings loaded from the environment and an optional .env file."""

    model_config = SettingsConfigDict(
        env_prefix="SLACKHELLO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    slack_app_token: str = Field(
        default="", validation_alias="SLACK_APP_TOKEN", validate_default=True, repr=False
    )
    slack_bot_token: str = Field(
        default="", validation_alias="SLACK_BOT_TOKEN", validate_default=True, repr=False
    )

    debug: bool = Field(default=False, description="Enable slack_sdk debug logging and socket tracing")
    log_level: str = Field(default="INFO", description="Log level")
    log_format: LogFormat = Field(default="json", description="Log sink format")
    ping_interval: float = Field(default=5.0, gt=0, description="Socket Mode ping interval in seconds")
    auto_reconnect: bool = Field(default=True, description="Let the socket client reconnect on its own")

    @field_validator("slack_app_token", "slack_bot_token")
    @classmethod
    def _check_token(cls, value: str, info: ValidationInfo) -> str:
        env_name, prefix = _CREDENTIALS[info.field_name]
        value = value.strip()
        if not value:
            raise PydanticCustomError(
                "missing_credential",
                "{name} environment variable is required",
                {"name": env_name},
            )
        if not value.startswith(prefix):
            raise PydanticCustomError(
                "invalid_credential",
                '{name} must have the prefix "{prefix}"',
                {"name": env_name, "prefix": prefix},
            )
        return value


def load_settings(**overrides: object) -> Settings:
    """Load settings, translating validation failures into configuration errors.

    Only the first failure is reported, checking the app token before the bot token.
    """

    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        error = exc.errors()[0]
        if error["type"] == "missing_credential":
            raise MissingCredentialError(error["msg"]) from None
        if error["type"] == "invalid_credential":
            raise InvalidCredentialError(error["msg"]) from None
        location = ".".join(str(part) for part in error["loc"])
        raise ConfigurationError(f"invalid setting {location}: {error['msg']}") from None
