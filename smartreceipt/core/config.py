"""
smartreceipt/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, admin ids, paywall limits, collaborator URLs)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal, List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    APP_VERSION: str = "1.0.0"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="receiptBot",
        description="MongoDB database name"
    )

    # Identities
    ADMIN_IDS: List[str] = Field(
        default_factory=list,
        description="Channel-scoped identities with admin rights (support desk, settings)"
    )
    AUTHORIZED_GROUP_ID: Optional[str] = Field(
        default=None,
        description="Group whose members may onboard while registrations are closed"
    )

    # Paywall
    FREE_TRIAL_LIMIT: int = Field(
        default=2,
        description="Receipts a user may create before the paywall applies"
    )
    FREE_EDIT_LIMIT: int = Field(
        default=2,
        description="Free edits allowed per receipt for non-subscribers"
    )
    SUBSCRIPTION_FEE: int = Field(
        default=2000,
        description="Subscription price in Naira"
    )
    SUBSCRIPTION_MONTHS: int = Field(
        default=6,
        description="Subscription length granted by one payment"
    )

    # Receipts
    RECEIPT_BASE_URL: str = Field(
        default="http://localhost:8080/",
        description="Base URL hosting template.<n>.html receipt templates"
    )
    TEMPLATE_COUNT: int = Field(
        default=6,
        description="Number of receipt templates a user can choose from"
    )
    HISTORY_LIMIT: int = Field(
        default=5,
        description="Number of recent receipts listed by 'history'"
    )

    # Rendering service (remote headless browser)
    RENDER_SERVICE_URL: str = Field(
        default="http://localhost:3000",
        description="Headless browser rendering service base URL"
    )
    RENDER_TIMEOUT: int = Field(
        default=60,
        description="Rendering request timeout in seconds"
    )

    # Telegram
    TELEGRAM_BOT_TOKEN: Optional[str] = Field(
        default=None,
        description="Telegram bot token"
    )
    TELEGRAM_API_BASE: str = Field(
        default="https://api.telegram.org",
        description="Telegram Bot API base URL"
    )
    TELEGRAM_POLLING: bool = Field(
        default=True,
        description="Receive Telegram messages by long-polling getUpdates"
    )
    TELEGRAM_POLL_TIMEOUT: int = Field(
        default=25,
        description="Seconds each getUpdates call waits for new messages"
    )
    TELEGRAM_POLL_RETRY_DELAY: float = Field(
        default=5.0,
        description="Pause before polling again after a failed getUpdates"
    )

    # Logo hosting
    IMGBB_API_KEY: Optional[str] = Field(
        default=None,
        description="ImgBB API key used to host uploaded logos"
    )

    # PaymentPoint
    PAYMENTPOINT_BASE_URL: str = Field(
        default="https://api.paymentpoint.co/api/v1",
        description="PaymentPoint API base URL"
    )
    PAYMENTPOINT_API_KEY: Optional[str] = None
    PAYMENTPOINT_SECRET_KEY: Optional[str] = None
    PAYMENTPOINT_BUSINESS_ID: Optional[str] = None
    PAYMENT_EMAIL_DOMAIN: str = Field(
        default="smartreceipt.user",
        description="Domain used to encode a phone number as a payment email"
    )
    PAYMENT_WEBHOOK_SECRET: Optional[str] = Field(
        default=None,
        description="Shared secret expected in the X-Webhook-Secret header"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )

    # Security
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        description="Application secret key"
    )

    @validator("SECRET_KEY")
    def validate_secret_key(cls, v, values):
        """Ensure secret key is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v

    @validator("RECEIPT_BASE_URL")
    def ensure_trailing_slash(cls, v):
        """Templates are addressed relative to the base URL."""
        return v if v.endswith("/") else f"{v}/"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.RECEIPT_BASE_URL:
        errors.append("RECEIPT_BASE_URL is required")

    # Production-specific validations
    if settings.is_production:
        if not settings.PAYMENT_WEBHOOK_SECRET:
            errors.append("PAYMENT_WEBHOOK_SECRET is required in production")
        if not settings.ADMIN_IDS:
            errors.append("ADMIN_IDS should list at least one admin in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
