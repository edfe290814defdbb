from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


_DEFAULT_DATA_DIR = Path.home() / ".artsy_client" / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ARTSY_",
        extra="ignore",
    )

    base_url: str = "https://rohit-hw-3.wl.r.appspot.com/"
    request_timeout: int = 30
    db_path: str = str(_DEFAULT_DATA_DIR / "artsy_client.db")
    snapshot_path: str = str(_DEFAULT_DATA_DIR / "user_data.json")
    persist_cookies_on_disk: bool = True
    sync_inline: bool = False
    max_workers: int = 4
    reload_max_retries: int = 2
    reload_backoff_seconds: float = 1.0


@lru_cache
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
