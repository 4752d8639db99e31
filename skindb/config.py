from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=(".env",), env_prefix="", case_sensitive=False)

    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    KEY_PREFIX: str = Field(default="skin", min_length=1)

    # "memory" keeps everything in-process (local runs, tests)
    STORE_BACKEND: Literal["redis", "memory"] = Field(default="redis")
    STORE_TIMEOUT: float = Field(default=5.0, gt=0.0)  # seconds per store call

    RANK_CAP: int = Field(default=1000, ge=1)
    STICKER_LOOKUP_LIMIT: int = Field(default=100, ge=1)

    RETRY_MAX: int = Field(default=3, ge=1)
    INGEST_CONCURRENCY: int = Field(default=10, ge=1)

    LOG_LEVEL: str = Field(default="INFO")


settings = Settings()
