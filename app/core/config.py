"""
Configuration - ledger engine settings from LEDGER_* environment variables.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.domain.value_objects import BALANCE_TOLERANCE, DirectionPolicy


def _split_codes(raw: str) -> frozenset[str]:
    return frozenset(code.strip() for code in raw.split(",") if code.strip())


class LedgerSettings(BaseSettings):
    """Runtime settings; loaded from the environment and an optional .env file."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    balance_tolerance: Decimal = Field(
        default=BALANCE_TOLERANCE,
        ge=0,
        description="Largest |debits - credits| still treated as balanced",
    )
    asset_reduction_codes: str = Field(
        default="",
        description="Comma-separated asset account codes that may be credited",
    )
    liability_reduction_codes: str = Field(
        default="",
        description="Comma-separated liability account codes that may be debited",
    )

    database_type: str = Field(default="sqlite", description="sqlite or postgresql")
    database_path: str = "./data/ledger.db"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "ledger"
    db_user: str = "postgres"
    db_password: str = "postgres"

    balance_cache_enabled: bool = Field(
        default=True,
        description="In-process balance cache; disable when running more than one worker",
    )

    log_level: str = "INFO"
    log_json: bool = True

    def direction_policy(self) -> DirectionPolicy:
        return DirectionPolicy(
            asset_reduction_codes=_split_codes(self.asset_reduction_codes),
            liability_reduction_codes=_split_codes(self.liability_reduction_codes),
        )


@lru_cache()
def get_settings() -> LedgerSettings:
    """Cached settings; call get_settings.cache_clear() to reload."""
    return LedgerSettings()


def get_engine_url(settings: LedgerSettings | None = None) -> str:
    settings = settings or get_settings()
    if settings.database_type == "sqlite":
        return f"sqlite:///{settings.database_path}"
    elif settings.database_type == "postgresql":
        return (
            f"postgresql://{settings.db_user}:{settings.db_password}"
            f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
        )
    else:
        raise ValueError(f"Unsupported database type: {settings.database_type}")
