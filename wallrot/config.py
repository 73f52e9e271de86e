"""
Runtime configuration read from environment variables.
"""

import os
from typing import Literal, Optional, Mapping
from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_SEARCH_URL = "https://wallhaven.cc/api/v1/search"

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class Settings(BaseModel):
    """Proxy settings."""
    search_url: str = DEFAULT_SEARCH_URL
    api_key: Optional[str] = None
    rotation_cache_enabled: bool = True
    rotation_cache_max_entries: int = 0
    upstream_timeout_seconds: float = 30.0
    database_url: Optional[str] = None
    log_level: LogLevel = "INFO"

    @property
    def upstream_timeout(self) -> Optional[float]:
        """Timeout for httpx, None when disabled."""
        if self.upstream_timeout_seconds <= 0:
            return None
        return self.upstream_timeout_seconds


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from the environment.

    Loads .dev.env first when it exists in the working directory.

    Args:
        environ: Mapping to read instead of os.environ

    Returns:
        Validated Settings
    """
    if environ is None:
        if os.path.exists('.dev.env'):
            load_dotenv('.dev.env')
        environ = os.environ

    values = {}
    if environ.get("SEARCH_URL"):
        values["search_url"] = environ["SEARCH_URL"]

    # IMG_APIKEY is the older name for the key
    api_key = environ.get("WALLHAVEN_API_KEY") or environ.get("IMG_APIKEY")
    if api_key:
        values["api_key"] = api_key

    if "ROTATION_CACHE_ENABLED" in environ:
        values["rotation_cache_enabled"] = environ["ROTATION_CACHE_ENABLED"]
    if "ROTATION_CACHE_MAX_ENTRIES" in environ:
        values["rotation_cache_max_entries"] = environ["ROTATION_CACHE_MAX_ENTRIES"]
    if "UPSTREAM_TIMEOUT_SECONDS" in environ:
        values["upstream_timeout_seconds"] = environ["UPSTREAM_TIMEOUT_SECONDS"]
    if environ.get("DATABASE_URL"):
        values["database_url"] = environ["DATABASE_URL"]
    if environ.get("LOG_LEVEL"):
        values["log_level"] = environ["LOG_LEVEL"].upper()

    return Settings(**values)
