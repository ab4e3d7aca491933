"""Configuration package."""

from supply_ledger.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    LedgerSettings,
    NumberingSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "LedgerSettings",
    "NumberingSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
