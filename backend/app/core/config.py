from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # App
    APP_ENV: str = "development"
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/catalog.db"
    DB_AUTO_CREATE: bool = True

    # Uploads
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_VIDEO_SIZE_MB: int = 200
    MAX_SPREADSHEET_SIZE_MB: int = 10

    # Catalog
    SPECIAL_ID_PREFIX: str = "CR"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    BULK_UPLOAD_RATE_LIMIT: str = "30/minute"

    # Monitoring
    SENTRY_DSN: str = ""
    SENTRY_TRACES_SAMPLE_RATE: float = 0.0

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",")]

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
