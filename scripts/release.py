"""
Release-phase helper.

Goal:
- Fail fast if DATABASE_URL is missing (avoid silently using SQLite in prod).
- Run alembic migrations.
- Seed invoice types (idempotent).
- With --serve, replace this process with gunicorn on app.wsgi:app
  (PORT / WEB_CONCURRENCY / GUNICORN_TIMEOUT from app.crm.config).

Usage:
  python scripts/release.py            # migrate + seed
  python scripts/release.py --serve    # migrate + seed, then exec gunicorn
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.crm.config import load_config  # noqa: E402


def _require_env(name: str) -> str:
    v = (os.environ.get(name) or "").strip()
    if not v:
        raise RuntimeError(f"Missing required environment variable {name}.")
    return v


def run_release() -> None:
    db_url = _require_env("DATABASE_URL")
    # Guardrail: prevent accidental prod deploys against SQLite.
    env = (os.environ.get("ENV") or "").strip().lower()
    if env in ("prod", "production") and db_url.startswith("sqlite"):
        raise RuntimeError("Refusing to run release on sqlite DATABASE_URL in production. Set DATABASE_URL to Postgres.")

    print("=== release start ===", flush=True)
    print(f"ENV={env or '(unset)'}", flush=True)
    print("Running Alembic migrations...", flush=True)

    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(cfg, "head")
    print("Migrations complete.", flush=True)

    print("Seeding invoice types (idempotent)...", flush=True)
    from scripts import init_db

    init_db.seed_only(database_url=db_url)
    print("Seed complete.", flush=True)
    print("=== release done ===", flush=True)


def gunicorn_argv(config: dict) -> list[str]:
    port = int(config["PORT"])
    if not 1 <= port <= 65535:
        raise RuntimeError(f"PORT must be 1-65535 (got {port}).")
    workers = int(config["WEB_CONCURRENCY"])
    if workers < 1:
        raise RuntimeError(f"WEB_CONCURRENCY must be at least 1 (got {workers}).")
    return [
        "gunicorn",
        "app.wsgi:app",
        "--bind", f"0.0.0.0:{port}",
        "--workers", str(workers),
        "--timeout", str(int(config["GUNICORN_TIMEOUT"])),
        # engine is disposed in each worker after fork (see create_app)
        "--preload",
        "--access-logfile", "-",
        "--error-logfile", "-",
    ]


def main() -> None:
    parser = argparse.ArgumentParser(description="Run migrations and seeding; optionally start gunicorn.")
    parser.add_argument("--serve", action="store_true", help="Exec gunicorn after the release phase.")
    args = parser.parse_args()

    # validate server settings before touching the database
    argv = gunicorn_argv(load_config()) if args.serve else None
    try:
        run_release()
    except Exception as e:
        print(f"Release failed: {e}", flush=True)
        sys.exit(1)

    if argv is not None:
        print(f"=== exec {' '.join(argv)} ===", flush=True)
        # gunicorn takes over this PID so it receives container signals directly
        os.execvp(argv[0], argv)


if __name__ == "__main__":
    main()
