from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (or a .env file).

    Delivery provider credentials switch the delivery client from demo to
    live mode; the investment API URL does the same for the securities proxy.
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    SERVICE_NAME: str = "electronics-store-api"
    VERSION: str = "1.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./database.db"
    SEED_DEMO_CATALOG: bool = True

    # Redis (delivery provider token storage)
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_TTL: int = 300

    # Outbound HTTP
    HTTP_TIMEOUT: float = 10.0

    # Delivery provider (CDEK API v2)
    CDEK_CLIENT_ID: Optional[str] = None
    CDEK_CLIENT_SECRET: Optional[str] = None
    CDEK_TEST_MODE: bool = True
    CDEK_TEST_URL: str = "https://api.edu.cdek.ru/v2"
    CDEK_PRODUCTION_URL: str = "https://api.cdek.ru/v2"
    CDEK_FROM_LOCATION_CODE: int = 44

    # Investment / securities service
    INVESTMENT_API_URL: Optional[str] = None

    @property
    def delivery_live_mode(self) -> bool:
        return bool(self.CDEK_CLIENT_ID and self.CDEK_CLIENT_SECRET)

    @property
    def cdek_base_url(self) -> str:
        return self.CDEK_TEST_URL if self.CDEK_TEST_MODE else self.CDEK_PRODUCTION_URL


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
