from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    API_V1_PREFIX: str = "/api/v1"

    # Public origin of the dashboard, used for links in outgoing mail
    BASE_URL: str = "http://localhost:3000"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Security
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    JWT_ALGORITHM: str = "HS256"
    RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # Database
    DATABASE_URL: str | None = None
    POSTGRES_HOST: str = "db"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "prompthive"

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Files
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024

    # Mocked mail transport
    EMAIL_LOG_FILE: str = "logs/email.log"

    # Admin self-promotion
    ADMIN_PROPERTIES_FILE: str = "admin.properties"

    # Scraper
    SCRAPER_TIMEOUT: float = 15.0
    SCRAPER_USER_AGENT: str = "PromptHive-Scraper/1.0"


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
