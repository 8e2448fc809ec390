"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Smart Todo Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://smart_todo@localhost:5432/smart_todo"
    app_timezone: str = "Asia/Seoul"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    summary_temperature: float = 0.7
    parse_temperature: float = 0.3
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "smart-todo"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
