from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote_plus


SUPPORTED_APP_ENVS = {"SIT", "UAT"}


def _current_app_env() -> str:
    default_env = "UAT" if os.getenv("RAILWAY_ENVIRONMENT", "").strip() else "SIT"
    raw = os.getenv("APP_ENV", default_env).strip().upper()
    if not raw:
        return default_env
    if raw not in SUPPORTED_APP_ENVS:
        raise ValueError(f"Invalid APP_ENV: {raw}. Supported values: {sorted(SUPPORTED_APP_ENVS)}")
    return raw


def _get_first_set(*env_names: str) -> str:
    for env_name in env_names:
        value = os.getenv(env_name, "").strip()
        if value:
            return value
    return ""


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


def _normalize_database_url(raw_url: str) -> str:
    if not raw_url:
        return raw_url
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+psycopg2://", 1)
    if raw_url.startswith("postgresql://") and "+" not in raw_url.split("://", 1)[0]:
        return raw_url.replace("postgresql://", "postgresql+psycopg2://", 1)
    return raw_url


def _with_sslmode_if_needed(db_url: str) -> str:
    if not db_url or "sslmode=" in db_url or not db_url.startswith("postgresql"):
        return db_url
    lowered = db_url.lower()
    if "localhost" in lowered or "127.0.0.1" in lowered:
        return db_url
    sep = "&" if "?" in db_url else "?"
    return f"{db_url}{sep}sslmode=require"


def _build_database_url() -> str:
    prefix = _current_app_env()
    explicit = _get_first_set(f"{prefix}_DATABASE_URL", "DATABASE_URL")
    host = _get_first_set(f"{prefix}_PGHOST", "PGHOST")
    port = _get_first_set(f"{prefix}_PGPORT", "PGPORT") or "5432"
    user = _get_first_set(f"{prefix}_PGUSER", "PGUSER")
    password = _get_first_set(f"{prefix}_PGPASSWORD", "PGPASSWORD")
    database = _get_first_set(f"{prefix}_PGDATABASE", "PGDATABASE")

    if explicit:
        return _with_sslmode_if_needed(_normalize_database_url(explicit))

    if host and user and database:
        pwd = quote_plus(password)
        url = f"postgresql+psycopg2://{user}:{pwd}@{host}:{port}/{database}"
        return _with_sslmode_if_needed(url)

    # Local dev fallback when no database is configured.
    sqlite_file = Path(os.getenv("SQLITE_DB_PATH", "./vault.db")).as_posix()
    if sqlite_file.startswith("/"):
        return f"sqlite:///{sqlite_file}"
    return f"sqlite:///./{sqlite_file.lstrip('./')}"


def _build_db_schema() -> str:
    prefix = _current_app_env()
    return _get_first_set(f"{prefix}_DB_SCHEMA", "DB_SCHEMA") or "vault"


@dataclass(frozen=True)
class Settings:
    app_env: str = _current_app_env()
    app_name: str = os.getenv("APP_NAME", "vault")
    app_debug: bool = _env_flag("APP_DEBUG", "false")
    app_host: str = os.getenv("APP_HOST", "0.0.0.0")
    app_port: int = int(os.getenv("APP_PORT", "8004"))

    database_url: str = _build_database_url()
    db_schema: str = _build_db_schema()

    price_refresh_interval_seconds: int = int(os.getenv("PRICE_REFRESH_INTERVAL_SECONDS", "60"))
    price_refresh_scheduler_enabled: bool = _env_flag("PRICE_REFRESH_SCHEDULER_ENABLED", "true")
    price_cache_ttl_seconds: int = int(os.getenv("PRICE_CACHE_TTL_SECONDS", "30"))
    price_request_pause_seconds: float = float(os.getenv("PRICE_REQUEST_PAUSE_SECONDS", "0.1"))
    price_history_period: str = os.getenv("PRICE_HISTORY_PERIOD", "5d")


settings = Settings()


def get_settings() -> Settings:
    return settings
