"""Configuration package."""

from goldengoose.config.settings import (
    DEFAULT_CREDENTIAL_KEY,
    DEFAULT_STATE_KEY,
    AppSettings,
    GoogleSheetsSettings,
    LedgerPolicySettings,
    LocalStoreSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "DEFAULT_CREDENTIAL_KEY",
    "DEFAULT_STATE_KEY",
    "AppSettings",
    "GoogleSheetsSettings",
    "LedgerPolicySettings",
    "LocalStoreSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
