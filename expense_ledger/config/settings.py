"""
Configuration Management for Expense Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The spreadsheet mirror is optional, so its settings default to empty
strings and are checked with validate_config() instead of failing at load.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local record store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="EXPENSE_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path.home() / ".expense_ledger",
        description="Directory holding the ledger and settings files"
    )
    max_storage_bytes: Optional[int] = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Quota for a single stored value (None disables the quota)"
    )

    @field_validator('data_dir')
    @classmethod
    def expand_data_dir(cls, v: Path) -> Path:
        """Expand ~ so the store never writes into a literal '~' folder."""
        return v.expanduser()


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets mirror configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        default="",
        description="Google API key with Sheets API access"
    )
    spreadsheet_id: str = Field(
        default="",
        description="ID of the Google Sheets spreadsheet to mirror into"
    )
    credentials_path: str = Field(
        default="",
        description="Optional service account credentials JSON (used instead of the API key)"
    )
    worksheet_name: str = Field(
        default="Expenses",
        description="Name of the worksheet holding expense rows"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if v and not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before syncing."
            )
        return v


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
    log_json: bool = Field(
        default=True,
        description="Render log lines as JSON (False renders for the console)"
    )

    # Validation thresholds
    max_expense_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Maximum reasonable expense amount (for sanity checking)"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        ge=0,
        description="How many days in the future an expense date can be"
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

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

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

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for every section that failed to load.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "google_sheets", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
