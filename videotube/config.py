import logging

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = logging.getLogger(__name__)

INSECURE_SECRET = "change-me"


class Settings(BaseSettings):
    # Application settings
    app_name: str = "VideoTube API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"
    log_json: bool = True

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./videotube.db"

    # Security settings
    secret_key: str = INSECURE_SECRET
    refresh_secret_key: str = INSECURE_SECRET
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 10
    cookie_secure: bool = False
    rate_limit_enabled: bool = True

    # CORS settings
    allowed_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Reverse proxies whose X-Forwarded-For / X-Real-IP headers are honored
    trusted_proxies: list[str] = []

    # View counting
    view_cooldown_seconds: int = 300
    view_reconcile_interval_minutes: int = 0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()

if settings.secret_key == INSECURE_SECRET or settings.refresh_secret_key == INSECURE_SECRET:
    logger.warning("Using default token secrets. This is insecure and should be changed in production!")
