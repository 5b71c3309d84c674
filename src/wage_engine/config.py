"""Configuration management for the wage engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment."""

    database_url: str
    blob_backend: str
    blob_root: Path
    blob_prefix: str
    azure_connection_string: str
    azure_container: str
    standard_hours: Decimal
    overtime_threshold_hours: Decimal
    overtime_multiplier: Decimal
    currency_quantum: Decimal
    default_classification: str
    snapshot_schema_version: str
    template_version: str
    strict_transitions: bool
    log_level: str

    @classmethod
    def from_env(cls) -> Settings:
        """Load settings from environment variables."""
        load_dotenv()

        return cls(
            database_url=os.getenv(
                "DATABASE_URL",
                "sqlite+aiosqlite:///./wage_engine.db",
            ),
            blob_backend=os.getenv("BLOB_BACKEND", "local").lower(),
            blob_root=Path(os.getenv("BLOB_ROOT", "./blob-store")),
            blob_prefix=os.getenv("BLOB_PREFIX", "salary-snapshots"),
            azure_connection_string=os.getenv("AZURE_STORAGE_CONNECTION_STRING", ""),
            azure_container=os.getenv("AZURE_STORAGE_CONTAINER", "documents"),
            standard_hours=Decimal(os.getenv("STANDARD_HOURS", "8")),
            overtime_threshold_hours=Decimal(os.getenv("OVERTIME_THRESHOLD_HOURS", "8")),
            overtime_multiplier=Decimal(os.getenv("OVERTIME_MULTIPLIER", "1.5")),
            currency_quantum=Decimal(os.getenv("CURRENCY_QUANTUM", "1")),
            default_classification=os.getenv(
                "DEFAULT_EMPLOYMENT_CLASSIFICATION", "daily_worker"
            ),
            snapshot_schema_version=os.getenv(
                "SNAPSHOT_SCHEMA_VERSION", "wage-snapshot-v1"
            ),
            template_version=os.getenv("TEMPLATE_VERSION", "v2024.11"),
            strict_transitions=os.getenv("STRICT_TRANSITIONS", "true").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_env()
