from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_RECYCLE: int = 300
    # asyncpg ssl mode: "" disables, "require" encrypts without certificate verification
    DB_SSL: str = ""

    REDIS_URL: str = "redis://localhost:6379/0"

    PUSH_BACKEND: Literal["apigateway", "redis"] = "apigateway"
    PUSH_ENDPOINT_URL: str | None = None
    PUSH_CHANNEL_PREFIX: str = "chat.connection"
    AWS_REGION: str = "us-east-1"

    REQUEST_TIMEOUT_SECONDS: float = 10.0

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
