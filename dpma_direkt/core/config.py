from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "DPMA Direkt Trademark Filing"
    environment: str = "dev"
    debug: bool = False

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    redis_url: str = "redis://redis:6379/0"
    local_api_key: str = "change-me"

    registration_rate_limit: int = 10
    rate_limit_window_seconds: int = 3600

    dpma_base_url: str = "https://direkt.dpma.de"
    dpma_editor_path: str = "/DpmaDirektWebEditoren"
    dpma_versand_path: str = "/DpmaDirektWebVersand"
    dpma_flow_id: str = "w7005"
    dpma_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/143.0.0.0 Safari/537.36"
    )
    dpma_accept_language: str = "de-DE,de;q=0.9,en-US;q=0.8,en;q=0.7"
    http_timeout_seconds: float = 60.0

    debug_capture: bool = False
    debug_dir: Path = Path("debug")
    receipts_dir: Path = Path("receipts")
    taxonomy_path: Path = Path("data/taxonomyDe.json")

    # Stage 8 files the application; stages 1-7 run regardless.
    allow_final_submit: bool = False
    taxonomy_preflight: bool = False

    registration_queue: str = "dpma_registrations"
    registration_task_time_limit_seconds: int = 900

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
