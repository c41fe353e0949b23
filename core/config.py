from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "COI Access API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Database (any SQLAlchemy URL)
    # -------------------------------------------------
    DATABASE_URL: str = "sqlite:///./local.db"
    # e.g. REPEATABLE READ; unset keeps the driver default
    DATABASE_ISOLATION_LEVEL: Optional[str] = None

    # -------------------------------------------------
    # JWT / auth
    # -------------------------------------------------
    JWT_SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    # -------------------------------------------------
    # SMTP Email Notifications
    # -------------------------------------------------
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: Optional[int] = None
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_FROM: Optional[str] = None

    # -------------------------------------------------
    # SMS gateway (HTTP)
    # -------------------------------------------------
    SMS_GATEWAY_URL: Optional[str] = None
    SMS_GATEWAY_TOKEN: Optional[str] = None

    # Upper bound for any outbound transport call
    NOTIFICATION_TIMEOUT_SECONDS: int = 15

    # -------------------------------------------------
    # Expiry sweep scheduling (UTC)
    # -------------------------------------------------
    ENABLE_SCHEDULER: bool = False
    EXPIRY_SWEEP_HOUR: int = 9
    EXPIRY_SWEEP_MINUTE: int = 0

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# Render/Neon often provide 'postgres://'. SQLAlchemy prefers 'postgresql+psycopg2://'
if settings.DATABASE_URL.startswith("postgres://"):
    settings.DATABASE_URL = settings.DATABASE_URL.replace(
        "postgres://", "postgresql+psycopg2://", 1
    )
