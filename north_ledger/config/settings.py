"""
Configuration Management for North Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here, but nothing reads
it implicitly deep in the call stack. Validators and services accept a
settings object in their constructor and only fall back to get_settings()
when none is passed, so tests can inject their own.
"""

import warnings
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    accounts_sheet_name: str = Field(default="ChartOfAccounts")
    journal_sheet_name: str = Field(default="JournalEntries")
    journal_lines_sheet_name: str = Field(default="JournalEntryLines")
    transactions_sheet_name: str = Field(default="Transactions")
    fixed_assets_sheet_name: str = Field(default="FixedAssets")
    liabilities_sheet_name: str = Field(default="Liabilities")
    budgets_sheet_name: str = Field(default="Budgets")
    profiles_sheet_name: str = Field(default="Profiles")
    audit_sheet_name: str = Field(default="AuditLog")

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class LedgerSettings(BaseSettings):
    """
    Bookkeeping rules.

    These are the knobs of the journal entry validator and the report
    generator.
    """

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    min_journal_lines: int = Field(
        default=2,
        ge=1,
        le=100,
        description="Minimum number of lines a journal entry must have"
    )
    balance_precision: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        description="Debits and credits are compared after rounding to this"
    )
    default_currency: str = Field(
        default="USD",
        pattern="^(USD|EUR|GBP|SEK)$",
    )
    exclude_cancelled_transactions: bool = Field(
        default=True,
        description="Leave cancelled transactions out of statements"
    )
    reference_prefix: str = Field(
        default="JE",
        min_length=1,
        max_length=10,
        description="Prefix for generated journal entry references"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    use_google_sheets: bool = Field(
        default=True,
        description="Persist to Google Sheets when it is configured"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with a
    '<name>_error' entry for each failure. Useful for startup checks.
    """
    results: dict = {}
    settings = get_settings()

    for name in ("google_sheets", "ledger", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
