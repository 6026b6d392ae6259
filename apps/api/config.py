"""
Application configuration using Pydantic Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./research_hub.db"
    DB_CONNECT_TIMEOUT_SECONDS: int = 2
    AUTO_CREATE_DB_SCHEMA: bool = True

    # API
    API_HOST: str = "0.0.0.0"
    PORT: int = 5000

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    # Admin identity
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""

    # Security
    JWT_SECRET: str = "change_me_in_production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_DAYS: int = 7

    # Cloudinary asset host
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    CLOUDINARY_UPLOAD_URL: str = "https://api.cloudinary.com/v1_1"
    ASSET_UPLOAD_TIMEOUT_SECONDS: int = 30
    ASSET_MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


settings = Settings()


def is_production() -> bool:
    return (settings.ENVIRONMENT or "").strip().lower() == "production"


def asset_host_configured() -> bool:
    """Uploads are enabled only when all three Cloudinary values are present."""
    return all(
        (value or "").strip()
        for value in (
            settings.CLOUDINARY_CLOUD_NAME,
            settings.CLOUDINARY_API_KEY,
            settings.CLOUDINARY_API_SECRET,
        )
    )


def validate_security_settings() -> None:
    """Fail fast when insecure default secrets are still configured."""
    insecure_values = {
        "",
        "change_me_in_production",
        "your_jwt_secret_change_in_production",
        "secret",
    }
    jwt_secret = (settings.JWT_SECRET or "").strip()

    if jwt_secret in insecure_values or len(jwt_secret) < 24:
        raise ValueError("JWT_SECRET is insecure. Configure a strong non-default secret (>=24 chars).")
    if not (settings.ADMIN_EMAIL or "").strip() or not settings.ADMIN_PASSWORD:
        raise ValueError("ADMIN_EMAIL and ADMIN_PASSWORD must be configured.")
