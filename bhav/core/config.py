# bhav/core/config.py
import os
import logging
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "Bhav Marketplace Client"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Remote API
    API_BASE_URL: str = os.environ.get("API_BASE_URL", "https://bhav-backend.onrender.com/api")
    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Notifications
    NOTIFICATION_PRIORITY: str = "medium"

    # Referrals
    MAX_SELLER_REFERRALS: int = 15

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Stub backend (local development and integration tests)
    STUB_HOST: str = "127.0.0.1"
    STUB_PORT: int = int(os.environ.get("PORT", 8000))
    STUB_SECRET_KEY: str = "bhav-stub-backend-local-development-secret"
    STUB_ALGORITHM: str = "HS256"
    STUB_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    @property
    def api_base_url(self) -> str:
        return self.API_BASE_URL.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings: Settings = get_settings()


def configure_logging(config: Settings = None) -> None:
    config = config or settings
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format=config.LOG_FORMAT,
    )
