# core/config.py
from __future__ import annotations
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration, read from DIVWELLY_* env vars or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="DIVWELLY_",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "Divwelly"
    api_url: str = Field(
        default="http://localhost:3001",
        description="Base URL of the household API",
    )
    request_timeout: float = Field(default=10.0, gt=0)
    secure_cookies: bool = False
    # signs the session cookie that carries toasts across redirects
    secret_key: str = "dev"
    loggerlizard_api_key: Optional[str] = None
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("loggerlizard_api_key")
    @classmethod
    def blank_key_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()


@lru_cache()
def get_settings() -> Settings:
    return Settings()
