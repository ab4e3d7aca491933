"""
Configuration Management for Supply Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Business tables (rates, tax rules) are NOT configuration - they are
injected values (see supply_ledger.billing.tables) so tests can swap them.
"""

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

    # Worksheet names within the spreadsheet
    deliveries_sheet_name: str = Field(
        default="Entries",
        description="Name of the sheet for delivery (challan) records"
    )
    ledger_sheet_name: str = Field(
        default="ClientLedger",
        description="Name of the sheet for the imported client ledger"
    )
    invoices_sheet_name: str = Field(
        default="GeneratedInvoices",
        description="Name of the sheet for saved invoice metadata"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    # When False, a missing worksheet is reported as SchemaNotConfiguredError
    create_missing_worksheets: bool = Field(
        default=True,
        description="Create worksheets (with headers) on first use"
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


class LedgerSettings(BaseSettings):
    """Client ledger import configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore"
    )

    batch_size: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Rows per insert batch when committing an import"
    )
    strict_dates: bool = Field(
        default=False,
        description="Fail the whole import on an unparseable date instead of dropping the row"
    )
    dayfirst: bool = Field(
        default=False,
        description="Read ambiguous dates like 03/04/2025 as day/month"
    )
    client_name: str = Field(
        default="Arihant Superstructures Ltd",
        description="Client shown on ledger statements"
    )


class NumberingSettings(BaseSettings):
    """Challan numbering configuration."""

    model_config = SettingsConfigDict(
        env_prefix="NUMBERING_",
        extra="ignore"
    )

    scheme: str = Field(
        default="JME",
        min_length=1,
        max_length=10,
        description="Document numbering prefix"
    )
    width: int = Field(
        default=3,
        ge=1,
        le=8,
        description="Zero-padding width of the sequence number"
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

    # File upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum ledger upload size in MB"
    )
    supported_table_formats: str = Field(
        default="xlsx,xlsm,csv",
        description="Comma-separated list of supported ledger file formats"
    )

    # Rendered invoices
    invoice_archive_dir: str = Field(
        default="./invoices",
        description="Directory where rendered invoice documents are kept"
    )

    @property
    def supported_formats_list(self) -> list[str]:
        """Get supported formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_table_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


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

    # Sub-settings are built lazily so the engine runs without Sheets credentials

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def numbering(self) -> NumberingSettings:
        return NumberingSettings()

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

    Returns a dict of {setting_name: is_valid}, plus
    {setting_name}_error entries for the failures.
    """
    results = {}
    settings = get_settings()

    for name in ("google_sheets", "ledger", "numbering", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
