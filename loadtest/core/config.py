# loadtest/core/config.py
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from loadtest.schemas import PayloadRanges


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BLT_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Paths
    repo_root: str = "."
    logs_dir: str = "logs"

    # Logging
    log_path: str = "logs/loadtest.jsonl"
    log_level: str = "INFO"

    # Target API
    base_url: str = "http://localhost:8080/api/v1"
    request_timeout_s: float = 10.0
    list_limit: int = 2000

    # Run shape
    profile: Literal["steady", "ramp", "spike"] = "steady"

    # Synthetic books
    payload: PayloadRanges = PayloadRanges()
    book_title: Optional[str] = None  # None -> Faker generated titles

    # --- derived helpers ---
    def root_path(self) -> Path:
        return Path(self.repo_root).resolve()

    def logs_path(self) -> Path:
        return (self.root_path() / self.logs_dir).resolve()

    def abs_log_path(self) -> Path:
        return (self.root_path() / self.log_path).resolve()

    def url(self, path: str) -> str:
        """Join a resource path onto ``base_url`` without doubling slashes."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
