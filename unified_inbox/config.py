"""Configuration and shared state."""

__version__ = "0.1.0"

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

_stderr_print = lambda *a, **kw: print(*a, **kw, file=sys.stderr)

SUPPORTED_STORE_BACKENDS = ("json", "memory", "postgrest")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, falling back to {default}")
        return default
    if value <= 0:
        _stderr_print(f"Non-positive {name}={raw!r}, falling back to {default}")
        return default
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, falling back to {default}")
        return default
    if value <= 0:
        _stderr_print(f"Non-positive {name}={raw!r}, falling back to {default}")
        return default
    return value


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        _stderr_print(f"Invalid {name}={raw!r}, ignoring")
        return None


STORE_BACKEND = os.getenv("INBOX_STORE_BACKEND", "json").strip().lower()
if STORE_BACKEND not in SUPPORTED_STORE_BACKENDS:
    _stderr_print(f"Unsupported INBOX_STORE_BACKEND={STORE_BACKEND!r}, falling back to 'json'")
    STORE_BACKEND = "json"

CONFIG = {
    "port": _env_int("PORT", 3000),
    "log_level": os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    # Feed computation
    "feed_limit": _env_int("INBOX_FEED_LIMIT", 50),
    "preview_chars": _env_int("INBOX_PREVIEW_CHARS", 80),
    "adapter_timeout_seconds": _env_float("INBOX_ADAPTER_TIMEOUT_SECONDS", 5.0),
    # Client cache
    "stale_seconds": _env_float("INBOX_STALE_SECONDS", 15.0),
    "refresh_interval_seconds": _env_float("INBOX_REFRESH_INTERVAL_SECONDS", 30.0),
    # Dismissals are durable unless a TTL is set
    "dismissal_ttl_days": _env_optional_int("INBOX_DISMISSAL_TTL_DAYS"),
    # Storage
    "store_backend": STORE_BACKEND,
    "storage_dir": os.getenv("INBOX_STORAGE_DIR", "inbox_data"),
    "postgrest_url": os.getenv("POSTGREST_URL", "").rstrip("/"),
    "postgrest_api_key": os.getenv("POSTGREST_API_KEY", ""),
}


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging from LOG_LEVEL (or an explicit level)."""
    name = (level or CONFIG["log_level"]).upper()
    numeric = getattr(logging, name, None)
    if not isinstance(numeric, int):
        _stderr_print(f"Invalid LOG_LEVEL={name!r}, falling back to 'INFO'")
        numeric = logging.INFO
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── Typed config ────────────────────────────────────────────


@dataclass
class FeedConfig:
    limit: int = 50
    preview_chars: int = 80
    adapter_timeout_seconds: float = 5.0


@dataclass
class CacheConfig:
    stale_seconds: float = 15.0
    refresh_interval_seconds: float = 30.0


@dataclass
class StorageConfig:
    backend: str = "json"
    storage_dir: str = "inbox_data"
    postgrest_url: str = ""
    postgrest_api_key: str = ""


@dataclass
class AppConfig:
    """Typed configuration for wiring the inbox service."""

    port: int = 3000
    log_level: str = "INFO"
    dismissal_ttl_days: Optional[int] = None
    feed: FeedConfig = field(default_factory=FeedConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create AppConfig from environment variables."""
        return cls(
            port=CONFIG["port"],
            log_level=CONFIG["log_level"],
            dismissal_ttl_days=CONFIG["dismissal_ttl_days"],
            feed=FeedConfig(
                limit=CONFIG["feed_limit"],
                preview_chars=CONFIG["preview_chars"],
                adapter_timeout_seconds=CONFIG["adapter_timeout_seconds"],
            ),
            cache=CacheConfig(
                stale_seconds=CONFIG["stale_seconds"],
                refresh_interval_seconds=CONFIG["refresh_interval_seconds"],
            ),
            storage=StorageConfig(
                backend=CONFIG["store_backend"],
                storage_dir=CONFIG["storage_dir"],
                postgrest_url=CONFIG["postgrest_url"],
                postgrest_api_key=CONFIG["postgrest_api_key"],
            ),
        )
