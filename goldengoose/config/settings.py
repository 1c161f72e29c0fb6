"""
Configuration Management for Golden Goose Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Remote sync is optional: when the Google Sheets section does not validate,
the application runs in offline mode on the local store alone.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Bump the version suffix on any incompatible change to the stored document.
DEFAULT_STATE_KEY = "golden_goose_ledger_v7"
DEFAULT_CREDENTIAL_KEY = "golden_goose_admin_credential_v1"


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets remote store configuration."""
    
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
    
    # One row per identity: id | data_json | updated_at
    ledger_sheet_name: str = Field(
        default="user_progress",
        description="Name of the sheet holding ledger snapshots"
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


class LocalStoreSettings(BaseSettings):
    """Local key-value store configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="LOCAL_STORE_",
        extra="ignore"
    )
    
    data_dir: str = Field(
        default="~/.goldengoose",
        description="Directory holding one file per stored key"
    )
    state_key: str = Field(
        default=DEFAULT_STATE_KEY,
        description="Versioned key of the serialized ledger document"
    )
    credential_key: str = Field(
        default=DEFAULT_CREDENTIAL_KEY,
        description="Key of the admin credential record"
    )
    
    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()


class LedgerPolicySettings(BaseSettings):
    """Ledger policy and admin gate configuration."""
    
    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore"
    )
    
    enforce_policy: bool = Field(
        default=True,
        description="Reject policy violations instead of logging them"
    )
    split_tolerance: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Allowed difference between a split total and the deposit amount"
    )
    admin_secret_pattern: str = Field(
        default=r"^\d{6}$",
        description="Regex a new admin secret must match"
    )
    secret_hasher: str = Field(
        default="bcrypt",
        pattern="^(bcrypt|plaintext)$",
        description="How the admin secret is stored"
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
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
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
    def local_store(self) -> LocalStoreSettings:
        return LocalStoreSettings()
    
    @property
    def policy(self) -> LedgerPolicySettings:
        return LedgerPolicySettings()
    
    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    
    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.
    
    Returns a dict of {setting_name: is_valid}.
    A False for google_sheets means the app will run offline.
    """
    results = {}
    
    settings = get_settings()
    
    sections = {
        "google_sheets": lambda: settings.google_sheets,
        "local_store": lambda: settings.local_store,
        "policy": lambda: settings.policy,
        "app": lambda: settings.app,
    }
    
    for name, loader in sections.items():
        try:
            loader()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)
    
    return results
