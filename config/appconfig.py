# config/appconfig.py
"""
Application Configuration
Database, security, email and logging settings for the clinic backend
"""
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings

# Calculate the project root
BASE_DIR = Path(__file__).resolve().parent.parent


class AppSettings(BaseSettings):
    """Core settings shared by every module."""

    PROJECT_NAME: str = "Clinic Queue Backend"

    # ============================================================================
    # DATABASE
    # ============================================================================
    DATABASE_URL: str = f"sqlite+aiosqlite:///{BASE_DIR / 'clinic.db'}"
    SQL_ECHO: bool = False

    # ============================================================================
    # SECURITY
    # ============================================================================
    SECRET_KEY: str = "change-this-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRY: int = 60          # minutes
    REFRESH_TOKEN_EXPIRY: int = 7          # days
    PASSWORD_RESET_EXPIRY: int = 15        # minutes
    MAX_FAILED_LOGINS: int = 5
    LOGIN_LOCKOUT_MINUTES: int = 15

    # ============================================================================
    # EMAIL (Resend)
    # ============================================================================
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "support@clinic.local"
    FRONTEND_URL: str = "http://localhost:5173"

    # ============================================================================
    # HTTP
    # ============================================================================
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Appointment dates are calendar dates in the clinic's local time
    CLINIC_TIMEZONE: str = "Asia/Kolkata"

    # ============================================================================
    # LOGGING
    # ============================================================================
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def LOGGING_CONFIG(self) -> dict:
        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {"handlers": ["console"], "level": self.LOG_LEVEL},
            "loggers": {
                "sqlalchemy.engine": {
                    "level": "INFO" if self.SQL_ECHO else "WARNING",
                },
                "uvicorn.access": {"level": "WARNING"},
            },
        }


settings = AppSettings()
