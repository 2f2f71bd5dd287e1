from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PAGERUNNER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Artifacts (screenshots / raw HTML) land here as {timestamp}.png / .html
    downloads_folder: str = "/downloads"

    page_load_timeout_ms: int = 3000
    force_wait_interval_ms: int = 3000

    viewport_width: int = 1600
    viewport_height: int = 900

    headless: bool = True
    stealth: bool = True
    # --no-sandbox is required when running as root inside a container
    browser_args: List[str] = ["--no-sandbox", "--disable-dev-shm-usage"]

    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
