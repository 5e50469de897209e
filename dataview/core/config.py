"""
Runtime configuration.

All settings come from environment variables and are read once into a frozen
``Settings`` instance. Connection parameters follow the usual libpq names
(``DB_USER``, ``DB_HOST``, ...) unless ``DATABASE_URL`` is given.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple
from urllib.parse import quote


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_truthy(name: str, default: str) -> bool:
    return (os.getenv(name) or default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str = field(repr=False, default="postgresql://localhost:5432/postgres")
    db_schema: str = "public"
    pool_min_size: int = 1
    pool_max_size: int = 10
    db_required: bool = True

    query_timeout_seconds: float = 30.0
    default_limit: int = 100
    max_limit: int = 1000
    distinct_limit: int = 100
    catalog_ttl_seconds: float = 300.0

    price_column: str = "avg_price_per_room"
    status_column: str = "booking_status"
    segment_column: str = "market_segment"

    cors_origins: Tuple[str, ...] = ("*",)
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"


def _database_url_from_parts() -> Optional[str]:
    host = (os.getenv("DB_HOST") or "").strip()
    name = (os.getenv("DB_NAME") or "").strip()
    if not host and not name:
        return None

    user = (os.getenv("DB_USER") or "").strip()
    password = os.getenv("DB_PASSWORD") or ""
    port = (os.getenv("DB_PORT") or "5432").strip()

    auth = ""
    if user:
        auth = quote(user, safe="")
        if password:
            auth += ":" + quote(password, safe="")
        auth += "@"
    return f"postgresql://{auth}{host or 'localhost'}:{port}/{name or 'postgres'}"


def load_settings() -> Settings:
    database_url = (
        (os.getenv("DATABASE_URL") or "").strip()
        or _database_url_from_parts()
        or Settings.database_url
    )

    origins_raw = _env_str("DATAVIEW_CORS_ORIGINS", "")
    origins = tuple(o.strip() for o in origins_raw.split(",") if o.strip()) or ("*",)

    settings = Settings(
        database_url=database_url,
        db_schema=_env_str("DATAVIEW_DB_SCHEMA", "public"),
        pool_min_size=_env_int("DATAVIEW_POOL_MIN_SIZE", 1),
        pool_max_size=_env_int("DATAVIEW_POOL_MAX_SIZE", 10),
        db_required=_env_truthy("DATAVIEW_DB_REQUIRED", "1"),
        query_timeout_seconds=_env_float("DATAVIEW_QUERY_TIMEOUT_SECONDS", 30.0),
        default_limit=_env_int("DATAVIEW_DEFAULT_LIMIT", 100),
        max_limit=_env_int("DATAVIEW_MAX_LIMIT", 1000),
        distinct_limit=_env_int("DATAVIEW_DISTINCT_LIMIT", 100),
        catalog_ttl_seconds=_env_float("DATAVIEW_CATALOG_TTL_SECONDS", 300.0),
        price_column=_env_str("DATAVIEW_PRICE_COLUMN", "avg_price_per_room"),
        status_column=_env_str("DATAVIEW_STATUS_COLUMN", "booking_status"),
        segment_column=_env_str("DATAVIEW_SEGMENT_COLUMN", "market_segment"),
        cors_origins=origins,
        host=_env_str("DATAVIEW_HOST", "0.0.0.0"),
        port=_env_int("DATAVIEW_PORT", 5000),
        log_level=_env_str("DATAVIEW_LOG_LEVEL", "INFO").upper(),
    )

    if settings.pool_min_size < 0 or settings.pool_max_size < max(1, settings.pool_min_size):
        raise ValueError("pool sizes must satisfy 0 <= DATAVIEW_POOL_MIN_SIZE <= DATAVIEW_POOL_MAX_SIZE")
    if settings.default_limit < 0 or settings.default_limit > settings.max_limit:
        raise ValueError("DATAVIEW_DEFAULT_LIMIT must be between 0 and DATAVIEW_MAX_LIMIT")
    return settings
