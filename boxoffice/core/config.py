from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Boxoffice API"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "boxoffice"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None

    # Booking lifecycle
    BOOKING_EXPIRY_MINUTES: int = 30
    BOOKING_SWEEP_INTERVAL_SECONDS: int = 60

    # Notifications: leave SMTP_HOST unset to log e-mails instead of sending them
    NOTIFICATION_WORKERS: int = 4
    NOTIFICATION_TIMEOUT_SECONDS: float = 10.0
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    MAIL_FROM: str = "no-reply@boxoffice.local"

    # Promotions
    PROMO_CODE_LENGTH: int = 8

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
