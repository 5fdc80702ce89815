"""
Create the books/accounts/operation_log tables and optionally seed sample rows.

Usage:
  python -m bookstore.scripts.init_db [--no-seed] [--db path/to/app.db]
"""
from __future__ import annotations

import argparse
import logging
import os

from bookstore.api import init_store


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--db", help="SQLite file (overrides BOOKSTORE_DB_PATH/config.yaml)")
    ap.add_argument("--no-seed", action="store_true", help="skip the sample books/accounts")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    if args.db:
        os.environ["BOOKSTORE_DB_PATH"] = args.db
    counts = init_store(seed=False if args.no_seed else None)
    print({"message": "ok", **counts})


if __name__ == "__main__":
    main()
