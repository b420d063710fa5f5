"""AsterVault configuration system using Pydantic Settings."""

from __future__ import annotations

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AsterVaultConfig(BaseSettings):
    """Main configuration class. Loads from .env file and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "ASTERVAULT"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 8100

    # Database
    database_url: str = "sqlite+aiosqlite:///./astervault.db"
    db_timeout_seconds: float = 10.0  # bound on every statement at the adapter boundary
    db_connect_timeout: int = 30  # driver-level lock/connect timeout
    db_wal_mode: bool = True
    db_busy_timeout: int = 5000  # ms
    db_synchronous: str = "NORMAL"
    auto_create_schema: bool = True

    # Inference
    log_predictions: bool = False
    default_top_k: int = 3
    # "package.module:attribute" of the numerical library's model factory
    model_factory: str = ""

    # Drift detection
    drift_threshold: float = 0.1
    drift_epsilon: float = 0.001

    # Logging
    log_dir: str = "logs"
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("db_synchronous")
    @classmethod
    def validate_synchronous(cls, v: str) -> str:
        allowed = {"OFF", "NORMAL", "FULL", "EXTRA"}
        upper = v.upper()
        if upper not in allowed:
            raise ValueError(f"db_synchronous must be one of {allowed}")
        return upper

    @field_validator("db_timeout_seconds", "drift_threshold", "drift_epsilon")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @field_validator("default_top_k")
    @classmethod
    def validate_top_k(cls, v: int) -> int:
        if v < 1:
            raise ValueError("default_top_k must be at least 1")
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def base_dir(self) -> Path:
        return Path(__file__).resolve().parent.parent


def get_config() -> AsterVaultConfig:
    """Factory function to create config instance."""
    return AsterVaultConfig()
