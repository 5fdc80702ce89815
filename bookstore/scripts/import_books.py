"""
Import every *.txt file in a folder as a book (title = file name without .txt).

Usage:
  python -m bookstore.scripts.import_books --dir ./import
"""
from __future__ import annotations

import argparse
import logging

from bookstore.api import init_store
from bookstore.logs import LogContext
from bookstore.services.import_svc import import_books_from_folder


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--dir", default=None, help="import folder (default: import_dir from config)")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    init_store(seed=False)
    log = LogContext("IMPORT_BOOKS_CLI")
    try:
        res = import_books_from_folder(log, args.dir)
    except Exception as e:
        log.write("ERROR", str(e))
        raise
    log.write("OK")
    print({"message": "ok", **res})


if __name__ == "__main__":
    main()
