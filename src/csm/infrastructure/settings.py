"""Application settings loaded from ``CSM_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CSM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Storage ---
    data_dir: Path = Field(default=Path("./data"))

    # --- Money ---
    accounting_currency: str = Field(default="EUR")

    # --- Inventory ---
    reservation_ttl_minutes: int = Field(default=30, ge=1)
    max_reservation_retries: int = Field(default=50, ge=1)

    # --- Documents ---
    return_window_days: int = Field(default=14, ge=0)
    invoice_payment_terms_days: int = Field(default=14, ge=0)

    # --- Logging ---
    log_level: str = Field(default="INFO")
    log_file: Path | None = Field(default=None)

    @field_validator("accounting_currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        if len(v) != 3 or not v.isalpha() or not v.isupper():
            raise ValueError("accounting_currency must be a 3-letter upper-case ISO 4217 code")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level '{v}'")
        return level


@lru_cache
def get_settings() -> Settings:
    return Settings()
