from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class MarkReadSettings(BaseSettings):
    model_config = {"env_prefix": "GMAIL_MARK_READ_"}

    credentials_path: str = "credentials.json"
    token_path: str = "token.json"
    user_id: str = "me"
    query: str = "is:unread"
    page_size: int = Field(default=500, gt=0, le=500)
    log_level: LogLevel = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


@lru_cache
def get_settings() -> MarkReadSettings:
    return MarkReadSettings()


class _SettingsProxy:
    """Reads through to get_settings() so the environment is parsed on first use."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()
