"""
Stafma Payroll - Configuration Settings

This module handles all application configuration using Pydantic Settings.
Environment variables are loaded from .env file.
"""

import re
from decimal import Decimal
from functools import lru_cache
from typing import List, Tuple

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BYPASS_PERIOD_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===========================================
    # APPLICATION CONFIGURATION
    # ===========================================
    app_name: str = "Stafma Payroll"
    app_env: str = "development"
    debug: bool = True
    api_version: str = "v1"

    # ===========================================
    # DATABASE CONFIGURATION
    # ===========================================
    database_url_async: str  # Required - must be set in .env
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # ===========================================
    # JWT (tokens are issued by the auth service)
    # ===========================================
    jwt_secret_key: str  # Required - must be set in .env
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # ===========================================
    # STATUTORY DEDUCTIONS
    # ===========================================
    pension_rate: Decimal = Decimal("0.06")
    pension_cap: Decimal = Decimal("1080")

    # ===========================================
    # PAYROLL PERIODS
    # Comma separated YYYY-MM periods exempt from the future-period check,
    # e.g. "2024-12". Empty in production.
    # ===========================================
    payroll_bypass_periods: str = ""

    @field_validator("payroll_bypass_periods")
    @classmethod
    def validate_bypass_periods(cls, v: str) -> str:
        """Reject malformed periods when settings load; normalizes to "YYYY-MM,YYYY-MM"."""
        periods = []
        for raw in v.split(","):
            raw = raw.strip()
            if not raw:
                continue
            match = BYPASS_PERIOD_PATTERN.match(raw)
            if not match or not 1 <= int(match.group(2)) <= 12:
                raise ValueError(f"Invalid payroll bypass period {raw!r}, expected YYYY-MM")
            periods.append(f"{match.group(1)}-{int(match.group(2)):02d}")
        return ",".join(periods)

    @property
    def payroll_bypass_period_list(self) -> List[Tuple[int, int]]:
        """Bypass periods as (year, month) tuples."""
        periods = []
        for raw in filter(None, self.payroll_bypass_periods.split(",")):
            year, month = raw.split("-")
            periods.append((int(year), int(month)))
        return periods

    # ===========================================
    # DISBURSEMENT (simulated bank transfers)
    # ===========================================
    transfer_success_rate: float = 0.95
    transfer_latency_seconds: float = 1.0
    transfer_timeout_seconds: float = 10.0
    disbursement_concurrency: int = 1  # 1 = sequential
    transaction_reference_prefix: str = "TRX"

    disbursement_bank_name: str = "Stafma Bank"
    payroll_source_account_number: str = "1234567890"
    advance_source_account_name: str = "Stafma Salary Advance Account"
    advance_source_account_number: str = "9876543210"

    # ===========================================
    # SALARY ADVANCES
    # ===========================================
    advance_fee_rate: Decimal = Decimal("0.05")
    advance_repayment_days: int = 30

    # ===========================================
    # EMPLOYEES
    # ===========================================
    employee_number_prefix: str = "STAFMA"

    # ===========================================
    # CORS SETTINGS
    # ===========================================
    cors_origins: str = "http://localhost:3000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every call.
    """
    return Settings()


# Export settings instance
settings = get_settings()
