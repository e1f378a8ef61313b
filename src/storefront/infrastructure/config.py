"""Application settings, read from ``STOREFRONT_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        extra="ignore",
    )

    # Storage
    data_dir: Path = _DEFAULT_DATA_DIR

    # Stock
    low_stock_threshold: int = Field(default=5, ge=0)
    set_stock_retries: int = Field(default=5, ge=1)
    currency: str = "INR"

    # Logging
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
