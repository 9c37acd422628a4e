from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: str = "local"
    APP_NAME: str = "taskboard"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite+pysqlite:///./taskboard.db"

    JWT_SECRET: str = "change_me_jwt"
    JWT_ACCESS_TTL_MINUTES: int = 15
    REFRESH_TOKEN_TTL_DAYS: int = 7

    CORS_ORIGINS: str = "http://localhost:3000"

    DEFAULT_PAGE_LIMIT: int = 10
    # Dumps every compiled list query plan to the "taskboard.query" logger.
    QUERY_PLAN_LOGGING: bool = False

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.strip().lower() in {"prod", "production"}

settings = Settings()
