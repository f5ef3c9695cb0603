import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    db_isolation_level: str

    app_timezone: str
    search_range_limit_days: int
    log_level: str

    # gunicorn (scripts/release.py --serve)
    port: int
    web_concurrency: int
    gunicorn_timeout: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///crm.db"),
        db_isolation_level=_getenv("DB_ISOLATION_LEVEL", "").upper(),
        app_timezone=_getenv("APP_TIMEZONE", "Asia/Tokyo"),
        search_range_limit_days=_getenv_int("SEARCH_RANGE_LIMIT_DAYS", 7),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        port=_getenv_int("PORT", 8080),
        web_concurrency=_getenv_int("WEB_CONCURRENCY", 2),
        gunicorn_timeout=_getenv_int("GUNICORN_TIMEOUT", 60),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "DB_ISOLATION_LEVEL": s.db_isolation_level,
        "APP_TIMEZONE": s.app_timezone,
        "SEARCH_RANGE_LIMIT_DAYS": s.search_range_limit_days,
        "LOG_LEVEL": s.log_level,
        "PORT": s.port,
        "WEB_CONCURRENCY": s.web_concurrency,
        "GUNICORN_TIMEOUT": s.gunicorn_timeout,
        # JSON API: payloads are small
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
