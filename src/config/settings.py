"""
Configuration Management for Notion Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
The three Notion database identifiers are supplied out-of-band and passed
opaquely into every core operation. Nothing else in the system owns state.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotionSettings(BaseSettings):
    """Notion integration and database configuration."""

    model_config = SettingsConfigDict(
        env_prefix="NOTION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Notion internal integration token"
    )
    transactions_db_id: str = Field(
        ...,
        description="ID of the Transactions database"
    )
    categories_db_id: Optional[str] = Field(
        default=None,
        description="ID of the Categories database (defaults to transactions)"
    )
    accounts_db_id: Optional[str] = Field(
        default=None,
        description="ID of the Accounts database"
    )

    @field_validator('categories_db_id', 'accounts_db_id', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def resolved_categories_db_id(self) -> str:
        """Categories live in the transactions database unless configured."""
        return self.categories_db_id or self.transactions_db_id


class AuthSettings(BaseSettings):
    """Shared-credential login gate configuration."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    username: str = Field(
        default="",
        description="The single username allowed to log in"
    )
    password_hash: str = Field(
        default="",
        description="bcrypt hash of the shared password"
    )
    session_secret: str = Field(
        default="change-me",
        description="Secret used to sign the session cookie"
    )
    session_cookie: str = Field(
        default="notion_session",
        description="Name of the session cookie"
    )
    session_max_age: int = Field(
        default=60 * 60,
        ge=60,
        description="Session lifetime in seconds"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.username and self.password_hash)


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
        description="Root log level"
    )

    # Listing limits
    default_recent_transactions_limit: int = Field(
        default=5,
        ge=1,
        le=100,
        description="How many recent transactions to show when no limit is given"
    )
    max_recent_transactions_limit: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Upper bound for the recent transactions limit"
    )
    default_page_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Page size used when the sorted query falls back"
    )

    @property
    def is_production(self) -> bool:
        """Production hides internal error details from clients."""
        return self.app_environment.lower() == "production"


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
    def notion(self) -> NotionSettings:
        return NotionSettings()

    @property
    def auth(self) -> AuthSettings:
        return AuthSettings()

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
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        notion = settings.notion
        results["notion"] = True
        results["accounts_database"] = notion.accounts_db_id is not None
    except Exception as e:
        results["notion"] = False
        results["notion_error"] = str(e)

    try:
        results["auth"] = settings.auth.is_configured
        if not results["auth"]:
            results["auth_error"] = "APP_USERNAME and APP_PASSWORD_HASH must be set"
    except Exception as e:
        results["auth"] = False
        results["auth_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
