"""
Create tables (development) and seed invoice types in an idempotent way.

Usage:
  python scripts/init_db.py            # create_all + seed
  python scripts/init_db.py --seed-only
"""

import argparse
import os
import sys
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scripts._db_utils import create_script_engine, resolve_database_url, script_session  # noqa: E402
from app.crm.models import Base  # noqa: E402
from app.crm.modules.invoice_types.models import InvoiceType  # noqa: E402

DEFAULT_INVOICE_TYPES = (
    ("Monthly", "One invoice per month, closing on the last day."),
    ("Per delivery", "Invoice issued with every delivery."),
    ("Prepaid", "Payment received before shipping; no invoice."),
)


def _invoice_types_from_env() -> list[tuple[str, str | None]]:
    """INVOICE_TYPES="Monthly,Per delivery" overrides the defaults (names only)."""
    raw = (os.environ.get("INVOICE_TYPES") or "").strip()
    if not raw:
        return list(DEFAULT_INVOICE_TYPES)
    return [(name.strip(), None) for name in raw.split(",") if name.strip()]


def create_tables(*, database_url: str | None = None) -> None:
    engine = create_script_engine(resolve_database_url(database_url))
    try:
        Base.metadata.create_all(bind=engine)
    finally:
        engine.dispose()


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed invoice types. Existing rows (matched by name) are left untouched.
    """
    created = 0
    with script_session(resolve_database_url(database_url)) as s:
        for name, description in _invoice_types_from_env():
            if s.query(InvoiceType).filter(InvoiceType.name == name).one_or_none():
                continue
            s.add(InvoiceType(name=name, description=description, updated_at=datetime.utcnow()))
            created += 1
    print(f"Seeded invoice types (created={created}).")


def main() -> None:
    parser = argparse.ArgumentParser(description="Initialize the database.")
    parser.add_argument("--seed-only", action="store_true", help="Skip create_all; only seed reference data.")
    parser.add_argument("--database-url", default=None)
    args = parser.parse_args()

    if not args.seed_only:
        create_tables(database_url=args.database_url)
        print("Created tables.")
    seed_only(database_url=args.database_url)


if __name__ == "__main__":
    main()
