from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional

class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "ordership"
    POSTGRES_USER: str = "ordership"
    POSTGRES_PASSWORD: str = "ordership"
    # Full SQLAlchemy URL, takes precedence over the POSTGRES_* parts
    DATABASE_URL: Optional[str] = None
    SQL_ECHO: bool = False

    SERVICE_NAME: str = "ordership"
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = "ordership.log"
    LOG_CONSOLE: bool = False
    # Name recorded in every operation log record; defaults to the OS user
    OPERATOR: Optional[str] = None

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

@lru_cache
def get_settings() -> Settings:
    return Settings()
