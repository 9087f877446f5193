from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings

from ..models.recipe import LanguageCode


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    log_level: str = "INFO"

    # Where the JSON file store keeps cooking progress records
    storage_dir: str = ".rasoi"
    default_language: LanguageCode = LanguageCode.EN

    # Seconds between timer ticks; tests shrink this
    timer_tick_seconds: float = 1.0

    # Remote recipe-history service; empty URL disables forwarding
    history_service_url: str = ""
    history_service_token: str = ""
    history_request_timeout: float = 10.0
    history_request_retries: int = 3

    cors_origins: List[str] = ["*"]

    model_config = {
        "env_file": ".env",
        "env_prefix": "RASOI_",
        "extra": "ignore",
    }

@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
