"""
Configuration Management for Group Splitter

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from splitter.models.group import ReferentialPolicy


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
    groups_sheet_name: str = Field(
        default="Groups",
        description="Name of the sheet for groups"
    )
    participants_sheet_name: str = Field(
        default="Participants",
        description="Name of the sheet for participants"
    )
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expenses"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class SettlementSettings(BaseSettings):
    """Settlement engine tuning."""

    model_config = SettingsConfigDict(
        env_prefix="SETTLEMENT_",
        extra="ignore"
    )

    epsilon: Decimal = Field(
        default=Decimal("0.01"),
        gt=0,
        le=1,
        description="Balances within +/- epsilon count as settled"
    )
    referential_policy: ReferentialPolicy = Field(
        default=ReferentialPolicy.PERMISSIVE,
        description="How to treat expense ids missing from the roster"
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

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Currencies
    default_currency: str = Field(
        default="PLN",
        description="Currency preselected for new expenses"
    )
    supported_currencies: str = Field(
        default="PLN,EUR,USD,GBP,CHF",
        description="Comma-separated list of accepted currency codes"
    )

    # Validation thresholds
    max_expense_amount: float = Field(
        default=1000000.0,
        description="Maximum reasonable expense amount (for sanity checking)"
    )
    max_name_length: int = Field(
        default=200,
        ge=1,
        description="Maximum length of group, participant and expense names"
    )

    @property
    def supported_currencies_list(self) -> list[str]:
        """Get supported currencies as a list."""
        return [c.strip().upper() for c in self.supported_currencies.split(",") if c.strip()]


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
    def settlement(self) -> SettlementSettings:
        return SettlementSettings()

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

    Returns a dict of {setting_name: is_valid}, plus `<name>_error`
    entries for the ones that failed. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("google_sheets", "settlement", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
