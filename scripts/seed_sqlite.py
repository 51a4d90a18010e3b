"""
Load a CSV export of global_sales_master into the local SQLite store.

Usage:
    python scripts/seed_sqlite.py sales.csv [--db data/sales.db]

The CSV needs the columns item_id, master_code, master_name, region,
platform, sale_month, gmv, quantity.
"""
import argparse
import asyncio
import csv
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analytics.state.backends.sqlite_store import COLUMNS, SqliteSalesStore  # noqa: E402


def read_rows(path: str):
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = [c for c in COLUMNS if c not in (reader.fieldnames or [])]
        if missing:
            raise SystemExit(f"CSV is missing columns: {', '.join(missing)}")
        for row in reader:
            yield {
                **row,
                "master_code": int(row["master_code"]),
                "gmv": float(row["gmv"]),
                "quantity": int(row["quantity"]),
            }


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the SQLite sales store from CSV")
    parser.add_argument("csv_path")
    parser.add_argument("--db", default=os.environ.get("SALES_SQLITE_PATH", "data/sales.db"))
    args = parser.parse_args()

    store = SqliteSalesStore(db_path=args.db)
    rows = list(read_rows(args.csv_path))

    async def _run():
        await store.initialize()
        await store.load_rows(rows)

    asyncio.run(_run())
    print(f"Loaded {len(rows)} rows into {args.db}")


if __name__ == "__main__":
    main()
