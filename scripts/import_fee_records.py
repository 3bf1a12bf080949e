#!/usr/bin/env python3
"""
Import fee records from an external JSON export (array of rows).

Usage:
  python scripts/import_fee_records.py export.json
  python scripts/import_fee_records.py export.json --today 2024-03-01
  # Requires DATABASE_URL and SECRET_KEY in .env (or export)

Rows are processed in order; failed rows are printed and the rest of the
batch is still imported. Exit status is 1 when any row failed.
"""
import argparse
import asyncio
import json
import os
import sys
from datetime import date

from dotenv import load_dotenv

_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(os.path.join(_root, ".env"))

# Add project root to path
sys.path.insert(0, _root)

from app.config import settings
from app.core.logging import setup_logging
from app.database import Database
from app.services.fee_import_service import FeeImportService


async def run(path: str, today: date = None) -> int:
    with open(path, encoding="utf-8") as fh:
        rows = json.load(fh)

    database = Database(settings.DATABASE_URL)
    try:
        async with database.session() as session:
            result = await FeeImportService(session).import_batch(rows, today=today)
    finally:
        await database.dispose()

    print(f"Imported: {result.success_count}  Failed: {result.error_count}")
    for error in result.errors:
        print(f"  row {error.index} [{error.admission_number or '-'}] {error.code}: {error.error}")
    return 1 if result.error_count else 0


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("path", help="JSON file holding an array of fee rows")
    parser.add_argument("--today", type=date.fromisoformat, default=None, help="Reference date (YYYY-MM-DD)")
    args = parser.parse_args()

    setup_logging()
    sys.exit(asyncio.run(run(args.path, args.today)))


if __name__ == "__main__":
    main()
