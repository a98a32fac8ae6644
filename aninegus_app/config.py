"""Environment-driven settings for the catalog search layer."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load .env before anything reads os.environ
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class Settings:
    """Typed view over the environment. Build with Settings.from_env()."""
    catalog_api_url: str = "http://127.0.0.1:3000"
    jikan_api_url: str = "https://api.jikan.moe/v4"
    http_timeout: float = 10.0
    jikan_rate_limit: int = 180  # Jikan allows 3 req/sec
    catalog_rate_limit: int = 600
    jikan_max_retries: int = 2
    search_debounce: float = 0.5
    page_debounce: float = 0.3
    debug_logging: bool = True
    log_dir: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            catalog_api_url=os.environ.get('CATALOG_API_URL', cls.catalog_api_url).rstrip('/'),
            jikan_api_url=os.environ.get('JIKAN_API_URL', cls.jikan_api_url).rstrip('/'),
            http_timeout=float(os.environ.get('CATALOG_HTTP_TIMEOUT', str(cls.http_timeout))),
            jikan_rate_limit=int(os.environ.get('JIKAN_RATE_LIMIT', str(cls.jikan_rate_limit))),
            catalog_rate_limit=int(os.environ.get('CATALOG_RATE_LIMIT', str(cls.catalog_rate_limit))),
            jikan_max_retries=int(os.environ.get('JIKAN_MAX_RETRIES', str(cls.jikan_max_retries))),
            search_debounce=float(os.environ.get('SEARCH_DEBOUNCE_SECONDS', str(cls.search_debounce))),
            page_debounce=float(os.environ.get('PAGE_DEBOUNCE_SECONDS', str(cls.page_debounce))),
            debug_logging=_env_bool('DEBUG_LOGGING', 'true'),
            log_dir=os.environ.get('LOG_DIR', ''),
        )
