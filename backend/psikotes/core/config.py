import os
import re
from pydantic_settings import BaseSettings
from typing import Optional


def split_env_list(raw: Optional[str]) -> list[str]:
    """Split comma, pipe or newline separated values, dropping blanks."""
    if not raw:
        return []
    return [value.strip() for value in re.split(r"[,|\n]", raw) if value.strip()]


def normalize_base_path(value: Optional[str]) -> str:
    if not value:
        return ""
    trimmed = value.strip()
    if not trimmed or trimmed == "/":
        return ""
    stripped = trimmed.strip("/")
    return f"/{stripped}" if stripped else ""


class Settings(BaseSettings):

    port: int = 8000
    environment: str = "development"

    postgres_user: str = os.getenv("POSTGRES_USER", "user")
    postgres_password: str = os.getenv("POSTGRES_PASSWORD", "password")
    postgres_db: str = os.getenv("POSTGRES_DB", "psikotes_db")
    postgres_host: str = os.getenv("POSTGRES_HOST", "db")
    postgres_port: int = 5432
    database_url: Optional[str] = None

    @property
    def async_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"

    # Gemini through its OpenAI-compatible endpoint
    gemini_api_keys: Optional[str] = None
    gemini_api_key: Optional[str] = None
    gemini_models: Optional[str] = None
    gemini_analysis_models: Optional[str] = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"

    generation_chunk_size: int = 10
    generation_max_attempts: int = 3
    generation_backoff_seconds: float = 1.0
    question_cache_ttl: int = 600

    @property
    def api_keys(self) -> list[str]:
        return split_env_list(self.gemini_api_keys or self.gemini_api_key)

    @property
    def question_models(self) -> list[str]:
        return split_env_list(self.gemini_models) or ["gemini-2.5-pro"]

    @property
    def analysis_models(self) -> list[str]:
        return split_env_list(self.gemini_analysis_models) or ["gemini-2.5-pro", "gemini-2.5-flash"]

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7
    auth_cookie_name: str = "psikotes_token"

    cors_origins_str: str = "http://localhost:3000,http://localhost:5173"

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins_str.split(",")]

    base_path: str = ""
    api_prefix: str = "/api"

    @property
    def api_root(self) -> str:
        return f"{normalize_base_path(self.base_path)}{self.api_prefix}"

    cache_backend: str = "redis"
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    cache_default_ttl: int = 600

    session_store_path: str = os.path.join(".tmp", "session-store.json")

    slow_request_threshold: float = 1.0

    generation_rate_limit: int = 20
    auth_rate_limit: int = 60

    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    celery_result_backend: str = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

    auto_job_config: str = "auto-jobs.json"
    auto_generation_interval_seconds: float = 3600.0

    default_timezone: str = "Asia/Jakarta"
    timezone_display_format: str = "%d.%m.%Y, %H:%M:%S"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
