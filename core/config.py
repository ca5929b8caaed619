"""
Application configuration using Pydantic Settings
"""

import json
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import TypeAdapter, ValidationError
from pydantic_settings import BaseSettings

from core.exceptions import FeedConfigError
from schemas.feed import FeedConfig


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database (run ledger + SQL sheet store)
    DATABASE_URL: str = "sqlite+aiosqlite:///./importer.db"

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Feeds
    FEEDS_CONFIG_PATH: str = "config/feeds.json"
    TIME_ZONE: str = "UTC"
    CSV_ENCODING: str = "utf-8-sig"

    # Backends
    FILE_STORE_BACKEND: Literal["local", "google_drive"] = "local"
    TABULAR_STORE_BACKEND: Literal["sql", "google_sheets"] = "sql"
    LOCAL_STORAGE_ROOT: str = "."
    GOOGLE_ACCESS_TOKEN: Optional[str] = None
    DEFAULT_STORE_ID: Optional[str] = None

    # Remote calls
    MAX_RETRIES: int = 3
    RETRY_DELAY: float = 1.0
    REQUEST_TIMEOUT: float = 30.0

    # Run control
    MAX_CONCURRENT_FEEDS: int = 1
    RUN_DEADLINE_SECONDS: Optional[float] = None
    RECORD_RUNS: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()


_feed_list_adapter = TypeAdapter(List[FeedConfig])


def load_feed_configs(path: str) -> List[FeedConfig]:
    """
    Load and validate the configured feeds.

    The file holds either a JSON list of feeds or an object with a
    ``feeds`` key. Feed order in the file is the processing order.

    Raises:
        FeedConfigError: If the file is missing, not JSON, or a feed is invalid
    """
    config_path = Path(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise FeedConfigError(
            "Feed configuration file not found",
            context={"path": str(config_path)},
            original_exception=e
        )
    except (OSError, json.JSONDecodeError) as e:
        raise FeedConfigError(
            "Feed configuration file could not be read",
            context={"path": str(config_path)},
            original_exception=e
        )

    if isinstance(raw, dict):
        raw = raw.get("feeds", [])

    try:
        feeds = _feed_list_adapter.validate_python(raw)
    except ValidationError as e:
        raise FeedConfigError(
            "Invalid feed configuration",
            context={"path": str(config_path), "errors": e.error_count()},
            original_exception=e
        )

    names = [feed.name for feed in feeds]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise FeedConfigError(
            "Feed names must be unique",
            context={"path": str(config_path), "duplicates": duplicates}
        )

    return feeds
