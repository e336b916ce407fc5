"""
Environment-based configuration.
Secrets (the Seoul Open API key) come from environment variables, never from the repo.

Usage:
    from dotenv import load_dotenv
    from config.settings import load_settings

    load_dotenv()
    settings = load_settings()

Nothing reads the environment at import time; main.py builds one Settings
and passes it down.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path

_DEFAULT_LEVEL_CONFIG = str(Path(__file__).with_name("levels.yaml"))


def _optional(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _int(key: str, default: int) -> int:
    raw = _optional(key, str(default))
    try:
        return int(raw)
    except ValueError:
        raise EnvironmentError(f"Environment variable '{key}' must be an integer, got {raw!r}.") from None


def _float(key: str, default: float) -> float:
    raw = _optional(key, str(default))
    try:
        return float(raw)
    except ValueError:
        raise EnvironmentError(f"Environment variable '{key}' must be a number, got {raw!r}.") from None


@dataclass(frozen=True)
class Settings:
    log_level: str

    # --- Circuit breaker (one per crawl source) ---
    breaker_failure_threshold: int        # Consecutive failures before OPEN
    breaker_recovery_timeout_ms: float    # Wait before a half-open probe
    breaker_half_open_max_calls: int      # Probe budget while HALF_OPEN

    # --- Crawling ---
    crawl_interval_s: float               # Seconds between full crawl rounds
    seoul_openapi_key: str                # Empty disables the source (logs a warning)
    seoul_openapi_base_url: str           # e.g. http://openapi.seoul.go.kr:8088
    seoul_openapi_page_size: int          # Rows per request (API max 1000)

    # --- Levels ---
    level_config_path: str                # YAML with thresholds, exp values, rewards


def load_settings() -> Settings:
    return Settings(
        log_level=_optional("LOG_LEVEL", "INFO"),
        breaker_failure_threshold=_int("BREAKER_FAILURE_THRESHOLD", 5),
        breaker_recovery_timeout_ms=_float("BREAKER_RECOVERY_TIMEOUT_MS", 60_000),
        breaker_half_open_max_calls=_int("BREAKER_HALF_OPEN_MAX_CALLS", 3),
        crawl_interval_s=_float("CRAWL_INTERVAL_S", 3600),
        seoul_openapi_key=_optional("SEOUL_OPENAPI_KEY"),
        seoul_openapi_base_url=_optional("SEOUL_OPENAPI_BASE_URL", "http://openapi.seoul.go.kr:8088"),
        seoul_openapi_page_size=_int("SEOUL_OPENAPI_PAGE_SIZE", 1000),
        level_config_path=_optional("LEVEL_CONFIG_PATH", _DEFAULT_LEVEL_CONFIG),
    )
