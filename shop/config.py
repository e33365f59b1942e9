"""
Application settings.

Values come from the environment (prefix ``STOREFRONT_``) or a ``.env``
file, e.g. ``STOREFRONT_DATA_DIR=/srv/fixtures``.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent

LOG_FORMAT = "%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


class Settings(BaseSettings):
    data_dir: Path = PROJECT_ROOT / "data"
    # No file keeps the session in memory only
    session_file: Optional[Path] = None
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000
    public_base_url: str = "http://localhost:8000"

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
