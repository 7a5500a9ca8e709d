"""
Service settings, read from the environment (``APPCANVAS_*``) and ``.env``.
"""
import logging
from functools import lru_cache
from typing import Any, Dict, List, Literal, Optional

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = logging.getLogger(__name__)

Environment = Literal["development", "staging", "production"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="APPCANVAS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # Service
    app_name: str = "AppCanvas Builder Service"
    app_version: str = "0.1.0"
    api_prefix: str = "/api/v1"
    environment: Environment = "development"
    debug: bool = True
    log_level: LogLevel = "INFO"
    log_to_file: bool = False
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Storage: "memory" keeps apps and records in process
    storage_backend: Literal["memory", "postgres"] = "postgres"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "appcanvas"
    postgres_user: str = "appcanvas"
    postgres_password: str = ""
    postgres_min_connections: int = 2
    postgres_max_connections: int = 10
    postgres_command_timeout: int = 30
    postgres_connect_timeout: int = 10

    # Redis (AI rate-limit counters)
    redis_enabled: bool = True
    redis_url: str = "redis://localhost:6379/0"
    redis_max_connections: int = 10

    # Bearer tokens
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_token_expire_minutes: int = 7 * 24 * 60

    # AI budget per user
    rate_limit_enabled: bool = True
    rate_limit_ai_requests_per_hour: int = 100
    rate_limit_window_seconds: int = 3600

    # Any OpenAI-compatible chat completions endpoint
    llm_enabled: bool = True
    llm_api_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4o-mini"
    llm_api_key: Optional[str] = None
    llm_timeout: float = 30.0
    llm_max_tokens: int = 2048
    llm_temperature: float = 0.4
    llm_max_retries: int = 2
    llm_retry_delay: float = 1.0
    llm_failure_threshold: int = 3
    llm_failure_window_minutes: int = 5
    llm_cache_ttl_seconds: int = 300
    llm_cache_max_entries: int = 256

    # Canvas
    canvas_grid_size: int = 10
    canvas_min_width: int = 100
    canvas_min_height: int = 60
    canvas_duplicate_offset: int = 20
    canvas_drop_width: int = 200
    canvas_drop_height: int = 100

    # Data API paging
    data_page_size_default: int = 50
    data_page_size_max: int = 500

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, v: Any) -> str:
        return str(v).upper()

    @field_validator("environment", mode="before")
    @classmethod
    def _known_environment(cls, v: Any) -> str:
        if v in ("development", "staging", "production"):
            return v
        logger.warning(f"Unknown environment {v!r}; using 'development'")
        return "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def llm_config(self) -> Dict[str, Any]:
        """Keyword config handed to the LLM orchestrator and its providers"""
        return {
            "enabled": self.llm_enabled,
            "api_url": self.llm_api_url,
            "api_key": self.llm_api_key,
            "model": self.llm_model,
            "request_timeout": self.llm_timeout,
            "max_tokens_default": self.llm_max_tokens,
            "max_retries": self.llm_max_retries,
            "retry_delay": self.llm_retry_delay,
            "failure_threshold": self.llm_failure_threshold,
            "failure_window_minutes": self.llm_failure_window_minutes,
            "cache_ttl_seconds": self.llm_cache_ttl_seconds,
            "cache_max_entries": self.llm_cache_max_entries,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
