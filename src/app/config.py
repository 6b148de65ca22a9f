"""Application configuration using Pydantic Settings."""
from functools import lru_cache
from typing import Optional
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings (environment variables override the defaults)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = Field("Premium Hosting")
    # Sandbox payments and generated root passwords need an explicit
    # "development" or "test" environment.
    ENVIRONMENT: str = Field("production")
    DEBUG: bool = Field(False)
    LOG_LEVEL: str = Field("INFO")
    API_V1_PREFIX: str = Field("/api/v1")

    # Database
    DATABASE_URL: Optional[str] = Field(None)
    DB_USER: str = Field("postgres")
    DB_PASSWORD: str = Field("postgres")
    DB_HOST: str = Field("localhost")
    DB_PORT: int = Field(5432)
    DB_NAME: str = Field("premiumhosting")
    DB_POOL_SIZE: int = Field(5)
    DB_MAX_OVERFLOW: int = Field(10)

    @computed_field
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    # Store selection: "sql" wraps the database with the in-memory fallback,
    # "memory" runs on volatile storage only.
    STORE_BACKEND: str = Field("sql")
    STORE_RETRY_INTERVAL_SECONDS: float = Field(30.0)

    # Auth
    JWT_SECRET_KEY: str = Field("change-me-in-production")
    JWT_ALGORITHM: str = Field("HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60 * 24)
    BCRYPT_ROUNDS: int = Field(12)

    # Uploads
    UPLOAD_DIR: str = Field("uploads")
    PUBLIC_BASE_URL: str = Field("http://localhost:8000")
    MAX_UPLOAD_BYTES: int = Field(500 * 1024 * 1024)

    # Payments
    UPI_ID: str = Field("thedigamber@fam")
    # "sandbox" trusts client transaction ids, "manual" queues them for review.
    PAYMENT_VERIFIER: Optional[str] = Field(None)

    # Root administrator
    ROOT_ADMIN_USERNAME: str = Field("thedigamber")
    ROOT_ADMIN_PASSWORD: Optional[str] = Field(None)
    ROOT_ADMIN_EMAIL: str = Field("admin@example.com")

    @property
    def IS_DEVELOPMENT(self) -> bool:
        return self.ENVIRONMENT.lower() in ("development", "test")

    @computed_field
    @property
    def PAYMENT_VERIFIER_MODE(self) -> str:
        if self.PAYMENT_VERIFIER:
            return self.PAYMENT_VERIFIER.lower()
        if self.IS_DEVELOPMENT:
            return "sandbox"
        return "manual"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
