"""
Application Configuration
Loads settings from environment variables using Pydantic Settings.
"""
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # Application
    APP_NAME: str = "UIBlocks"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"
    UVICORN_PORT: int = 8000

    # Database
    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 0

    # Celery
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str
    CELERY_TASK_SOFT_TIME_LIMIT: int = 270   # 4.5 min
    CELERY_TASK_TIME_LIMIT: int = 300        # 5 min

    # Frontend
    FRONTEND_URL: str = "http://localhost:3000"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Paddle
    PADDLE_WEBHOOK_SECRET: str = ""
    PADDLE_PRO_PRICE_ID: str = ""
    PADDLE_TEAM_PRICE_ID: str = ""

    # Email (Mailtrap)
    EMAIL_ENABLED: bool = False
    MAILTRAP_API_KEY: str = ""
    MAILTRAP_SENDER_EMAIL: str = "noreply@uiblocks.dev"
    MAILTRAP_SENDER_NAME: str = "UIBlocks"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def database_url_sync(self) -> str:
        """Sync URL derived from the async one, for the Celery worker."""
        return self.DATABASE_URL.replace(
            "postgresql+asyncpg://", "postgresql+psycopg2://"
        ).replace(
            "sqlite+aiosqlite://", "sqlite://"
        )


# Singleton instance
settings = Settings()
