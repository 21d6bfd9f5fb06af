"""
Stocklet Configuration
Core settings for the Stocklet inventory and accounts API
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    """Application settings"""

    # Application Info
    APP_NAME: str = "Stocklet API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./stocklet.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "stocklet-app"
    JWT_AUDIENCE: str = "stocklet-users"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    CLOCK_SKEW_SECONDS: int = 60
    REFRESH_THRESHOLD_SECONDS: int = 5 * 60
    MIN_PASSWORD_LENGTH: int = 6
    REGISTRATION_ENABLED: bool = False

    # Session cookie
    COOKIE_NAME: str = "token"
    COOKIE_SECURE: bool = False

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",  # Next.js frontend
        "http://localhost:3001",  # Alternative frontend port
    ]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_DIR: Path = Path("logs")
    LOG_FILE: str = "app.log"
    ERROR_LOG_FILE: str = "error.log"

    # Reports
    CURRENCY_FORMAT: str = '"Rp" #,##0'
    QUANTITY_FORMAT: str = "#,##0.00"

    # API Configuration
    API_PREFIX: str = "/api"
    DOCS_URL: str = "/docs"
    OPENAPI_URL: str = "/openapi.json"

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Reject an empty connection string early"""
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must not be empty")
        return v.strip()

    @property
    def cookie_max_age(self) -> int:
        return self.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


# Global settings instance
settings = Settings()
