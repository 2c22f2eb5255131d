"""
Configuration management for billsense.
"""

from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BillSenseSettings(BaseSettings):
    """Configuration settings for billsense."""

    # Storage
    db_path: Optional[str] = Field(default=None, alias="BILLSENSE_DB_PATH")

    # Public site, used to build invoice links in e-mails
    site_url: str = Field(default="http://localhost:8000", alias="BILLSENSE_SITE_URL")

    # System default e-mail sender (Brevo)
    system_sender_name: str = Field(default="BillSense", alias="BILLSENSE_SYSTEM_SENDER_NAME")
    system_sender_email: str = Field(
        default="noreply@billsense.com", alias="BILLSENSE_SYSTEM_SENDER_EMAIL"
    )
    system_brevo_api_key: Optional[str] = Field(default=None, alias="BILLSENSE_BREVO_API_KEY")

    # Provider endpoints
    resend_api_url: str = Field(
        default="https://api.resend.com/emails", alias="BILLSENSE_RESEND_API_URL"
    )
    brevo_api_url: str = Field(
        default="https://api.brevo.com/v3/smtp/email", alias="BILLSENSE_BREVO_API_URL"
    )
    http_timeout: float = Field(default=10.0, alias="BILLSENSE_HTTP_TIMEOUT")

    # Session and dashboard
    profile_fetch_timeout: float = Field(default=3.0, alias="BILLSENSE_PROFILE_FETCH_TIMEOUT")
    dashboard_workers: int = Field(default=6, alias="BILLSENSE_DASHBOARD_WORKERS")

    # Logging
    log_level: str = Field(default="WARNING", alias="BILLSENSE_LOG_LEVEL")
    log_format: str = Field(default="standard", alias="BILLSENSE_LOG_FORMAT")
    log_file: Optional[str] = Field(default=None, alias="BILLSENSE_LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        if v.lower() not in ("standard", "json"):
            raise ValueError("Log format must be one of: ['standard', 'json']")
        return v.lower()

    @field_validator("profile_fetch_timeout", "http_timeout")
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v

    @field_validator("dashboard_workers")
    @classmethod
    def validate_workers(cls, v):
        if v < 1:
            raise ValueError("dashboard_workers must be at least 1")
        return v

    @property
    def public_invoice_base(self) -> str:
        """Base URL for public invoice pages."""
        return f"{self.site_url.rstrip('/')}/invoice/public"


def load_config(env_file: Optional[str] = None) -> BillSenseSettings:
    """Load configuration from environment variables and .env file."""
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    return BillSenseSettings()


# Global configuration instance
_config: Optional[BillSenseSettings] = None


def get_config() -> BillSenseSettings:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(env_file: Optional[str] = None) -> BillSenseSettings:
    """Reload configuration (useful for testing)."""
    global _config
    _config = load_config(env_file)
    return _config
