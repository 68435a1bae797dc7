from typing import Any, List
from pydantic import AnyHttpUrl, field_validator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application configuration settings.

    Loads values from environment variables or .env file.
    """
    API_PREFIX: str = ""
    PROJECT_NAME: str = "Gollet API"

    # SECURITY
    SECRET_KEY: str = Field(description="Secret key for JWT encoding")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # DATABASE
    DATABASE_URL: str = Field(description="PostgreSQL Connection URL")
    DB_CONNECT_TIMEOUT_SECONDS: int = 10

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    # Paystack
    PAYSTACK_SECRET_KEY: str | None = None
    PAYSTACK_BASE_URL: str = "https://api.paystack.co"
    PAYSTACK_PREFERRED_BANK: str = "wema-bank"
    TRANSFER_SOURCE: str = "balance"

    # Dojah
    DOJAH_APP_ID: str | None = None
    DOJAH_SECRET_KEY: str | None = None
    DOJAH_BASE_URL: str = "https://api.dojah.io"
    DOJAH_KYC_BASE_URL: str = "https://sandbox.dojah.io"

    # Outbound provider calls
    PROVIDER_TIMEOUT_SECONDS: float = 15.0
    PROVIDER_MAX_RETRIES: int = 2

    # EMAIL
    ADMIN_EMAIL: str | None = None
    SMTP_TLS: bool = True
    SMTP_PORT: int | None = 587
    SMTP_HOST: str | None = None
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    EMAILS_FROM_EMAIL: str | None = "info@gollet.app"
    EMAILS_FROM_NAME: str | None = "Gollet"

    # CELERY
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/0"

    # RATE LIMITING
    RATE_LIMIT_STORAGE_URI: str = "memory://"

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Any) -> Any:
        """
        Parses comma-separated string of CORS origins into a list.
        """
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

settings = Settings()
