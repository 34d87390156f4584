"""
Configuration and settings for the hotel backend service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Well-known SMTP endpoints selectable through EMAIL_SERVICE.
MAIL_SERVICES = {
    "gmail": ("smtp.gmail.com", 587),
    "outlook": ("smtp-mail.outlook.com", 587),
    "hotmail": ("smtp-mail.outlook.com", 587),
    "yahoo": ("smtp.mail.yahoo.com", 587),
    "sendgrid": ("smtp.sendgrid.net", 587),
}


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Outbound mail
    email_service: str = Field(default="gmail")
    smtp_host: Optional[str] = Field(default=None)
    smtp_port: Optional[int] = Field(default=None)
    smtp_use_tls: bool = Field(default=True)
    smtp_timeout: float = Field(default=15.0)
    email_user: Optional[str] = Field(default=None)
    email_pass: Optional[SecretStr] = Field(default=None)
    email_from: Optional[str] = Field(default=None)
    contact_admin_email: str = Field(default="reservations@luxuryhotel.com")

    # Static hotel details used in email templates
    hotel_name: str = Field(default="Luxury Hotel")
    hotel_phone: str = Field(default="+91 (22) 1234-5678")
    hotel_email: str = Field(default="info@luxuryhotel.com")
    hotel_address: str = Field(
        default="123 Luxury Street, Premium District, Mumbai"
    )

    # Settings store (any SQLAlchemy URL)
    database_url: Optional[str] = Field(default=None)
    default_gst_percentage: float = Field(default=18.0, ge=0)

    # Contact rate limiting
    redis_url: Optional[str] = Field(default=None)
    contact_rate_limit_max: int = Field(default=5, ge=1)
    contact_rate_limit_window_seconds: int = Field(default=15 * 60, ge=1)
    relax_contact_rate_limit: bool = Field(default=False)

    # Firestore mirror
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_credentials_path: Optional[str] = Field(default=None)

    # Cloudinary media storage
    cloudinary_cloud_name: Optional[str] = Field(default=None)
    cloudinary_api_key: Optional[str] = Field(default=None)
    cloudinary_api_secret: Optional[SecretStr] = Field(default=None)
    cloudinary_root_folder: str = Field(default="Restaurant")

    # Admin routes
    admin_api_key: Optional[SecretStr] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def contact_rate_limit_enabled(self) -> bool:
        return self.is_production or not self.relax_contact_rate_limit

    def smtp_endpoint(self) -> tuple[Optional[str], int]:
        """Resolve host/port from explicit settings or the service selector."""
        service_host, service_port = MAIL_SERVICES.get(
            self.email_service.lower(), (None, 587)
        )
        host = self.smtp_host or service_host
        port = self.smtp_port or service_port
        return host, port

    @property
    def sender_address(self) -> Optional[str]:
        return self.email_from or self.email_user


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
