"""
Load the Japan Post postal code CSV (KEN_ALL.CSV) into zip_codes.

The file has no header; columns used:
  [2] 7-digit zip code, [6] prefecture, [7] city, [8] town

Usage:
  python scripts/import_zip_codes.py KEN_ALL.CSV [--encoding cp932] [--replace]
"""

from __future__ import annotations

import argparse
import csv
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from scripts._db_utils import resolve_database_url, script_session  # noqa: E402
from app.crm.modules.zip_data.models import ZipCode  # noqa: E402
from app.crm.modules.zip_data.service import normalize_zip_code  # noqa: E402

# KEN_ALL uses this town value when the address has no town part
_NO_TOWN = "以下に掲載がない場合"
_BATCH_SIZE = 5000


def parse_rows(lines) -> list[ZipCode]:
    rows: list[ZipCode] = []
    for record in csv.reader(lines):
        if len(record) < 9:
            continue
        code = normalize_zip_code(record[2])
        if code is None:
            continue
        town = record[8].strip()
        rows.append(
            ZipCode(
                zip_code=code,
                prefecture=record[6].strip(),
                city=record[7].strip(),
                town=None if (not town or town == _NO_TOWN) else town,
            )
        )
    return rows


def main() -> None:
    parser = argparse.ArgumentParser(description="Import postal codes into zip_codes.")
    parser.add_argument("csv_path")
    parser.add_argument("--encoding", default="cp932")
    parser.add_argument("--replace", action="store_true", help="Delete existing rows first.")
    parser.add_argument("--database-url", default=None)
    args = parser.parse_args()

    with open(args.csv_path, encoding=args.encoding, newline="") as f:
        rows = parse_rows(f)

    with script_session(resolve_database_url(args.database_url)) as s:
        if args.replace:
            s.query(ZipCode).delete()
        for start in range(0, len(rows), _BATCH_SIZE):
            s.add_all(rows[start:start + _BATCH_SIZE])
            s.flush()
    print(f"Imported {len(rows)} zip code rows.")


if __name__ == "__main__":
    main()
