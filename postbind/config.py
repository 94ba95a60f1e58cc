"""
Configuration Management Module

Settings are read from the environment (prefix ``POSTBIND_``) or a local
``.env`` file. Explicit arguments passed to ``Client`` always win.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "https://api.easypost.com/v2"


class Settings(BaseSettings):
    """SDK configuration"""
    api_key: Optional[SecretStr] = Field(
        default=None,
        description="EasyPost API key used as the basic-auth username",
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Root of the REST API; resource URLs are joined onto it",
    )
    timeout: float = Field(
        default=60.0,
        description="Total request timeout in seconds",
        gt=0,
    )
    log_level: str = Field(
        default="WARNING",
        description="Level used when logging is enabled through setup_logging",
    )

    model_config = SettingsConfigDict(env_prefix="POSTBIND_", env_file=".env", extra="ignore")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
