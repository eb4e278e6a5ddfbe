from typing import Literal

from pydantic_settings import BaseSettings as _BaseSettings
from pydantic_settings import SettingsConfigDict


class _Settings(_BaseSettings):

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEPLOYMENT_ENVIRONMENT: Literal["local", "dev", "prod"] = "local"

    DATABASE_URL: str = "sqlite+aiosqlite:///./inventory.db"
    # "REPEATABLE READ" on PostgreSQL
    DATABASE_ISOLATION_LEVEL: str = "SERIALIZABLE"

    CONFLICT_RETRY_ATTEMPTS: int = 3

    LOG_LEVEL: str = "INFO"


settings = _Settings()
