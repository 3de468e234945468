"""
Configuration module for the GradeStack workshop reminder worker.
Loads environment variables and provides typed configuration.
"""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.exceptions import ConfigurationError
from utils.validation import is_placeholder

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    # SMTP
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_secure: bool = False  # Implicit TLS; port 465 implies it as well
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    email_from_name: str = "GradeStack"
    email_from_address: Optional[str] = None  # Defaults to smtp_user

    # Reminder scheduling
    reminder_lookahead_minutes: int = Field(default=10, gt=0)
    reminder_interval_minutes: int = Field(default=1, gt=0)
    timezone: str = "Asia/Ho_Chi_Minh"

    environment: str = "development"  # development, staging, production
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def sender_address(self) -> Optional[str]:
        """Address used in the From header."""
        return self.email_from_address or self.smtp_user

    def validate_all_required(self) -> None:
        """
        Validate that all required settings are present.

        Raises:
            ConfigurationError: If required fields are missing or placeholders
        """
        required_fields = [
            "supabase_url",
            "supabase_key",
            "smtp_host",
            "smtp_user",
            "smtp_password",
        ]

        missing = [
            field for field in required_fields if is_placeholder(getattr(self, field, None))
        ]

        if missing:
            raise ConfigurationError(
                f"Missing or invalid required configuration: "
                f"{', '.join(missing)}. "
                f"Please check your .env file and ensure all required "
                f"values are set."
            )


# Global settings instance
settings = Settings()
