from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings


# Exports .env into os.environ as well, for uvicorn and ad-hoc scripts
load_dotenv()


class Settings(BaseSettings):
    # Database Connection
    DATABASE_URL: str = "sqlite:///./catalog.db"
    # e.g. "SERIALIZABLE" or "REPEATABLE READ" on PostgreSQL
    DATABASE_ISOLATION_LEVEL: Optional[str] = None
    DATABASE_ECHO: bool = False

    #Basic Authentication
    ADMIN_USERNAME: str = "admin"
    ADMIN_PASSWORD: str = "password123"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Listing defaults
    DEFAULT_PAGE_LIMIT: int = 20
    CATEGORY_MAX_PAGE_LIMIT: int = 100

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Returns the process-wide settings instance."""
    return Settings()


settings = get_settings()
