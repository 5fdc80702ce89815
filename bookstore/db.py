# bookstore/db.py
from __future__ import annotations

import sqlite3
import time
from contextlib import contextmanager
from typing import Iterator
import os
import yaml

from .errors import store_errors

# DB path resolution order:
# 1) env BOOKSTORE_DB_PATH (highest priority)
# 2) config.yaml test_db_path (when running under tests)
# 3) config.yaml db_path
# 4) fallback: app.db at the project root
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_ROOT_DB = os.path.join(_PROJECT_ROOT, "app.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS books (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  title TEXT NOT NULL,
  has_sales BOOLEAN NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS accounts (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  email TEXT NOT NULL
);
"""

SAMPLE_BOOKS = [(i, f"Sample Book {i}", 1 if i == 1 else 0) for i in range(1, 8)]
SAMPLE_ACCOUNTS = [
    (1, "John Doe", "john@example.com"),
    (2, "Jane Doe", "jane@example.com"),
]


def config_path() -> str:
    return os.environ.get("BOOKSTORE_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")


def read_config_yaml() -> dict:
    path = config_path()
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"config file {path} must contain a mapping")
    return cfg


def get_db_path(_: str | None = None) -> str:
    env_path = os.environ.get("BOOKSTORE_DB_PATH")
    cfg = read_config_yaml()
    cfg_db = cfg.get("db_path")
    cfg_test = cfg.get("test_db_path")
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        path = env_path
    elif is_test and isinstance(cfg_test, str) and cfg_test.strip():
        path = cfg_test.strip()
    elif isinstance(cfg_db, str) and cfg_db.strip():
        path = cfg_db.strip()
    else:
        path = _ROOT_DB

    # make sure the parent directory exists
    dirn = os.path.dirname(path) or "."
    os.makedirs(dirn, exist_ok=True)
    return path


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    Open a SQLite connection. An explicit db_path wins over get_db_path().
    The connection runs in autocommit mode (isolation_level=None); multi-statement
    units of work must go through transaction(). Rows come back as sqlite3.Row.
    A store that cannot be opened raises StoreUnavailable.
    """
    path = db_path or get_db_path()
    with store_errors():
        conn = sqlite3.connect(
            path,
            detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
            check_same_thread=False,
            isolation_level=None,
        )
    try:
        with store_errors():
            conn.execute("PRAGMA foreign_keys = ON;")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection, immediate: bool = True) -> Iterator[sqlite3.Connection]:
    """
    Scoped transaction: commits when the block exits normally, rolls back on any
    exception (KeyboardInterrupt and friends included) and re-raises it.

    BEGIN IMMEDIATE takes the write lock up front so no other writer can
    interleave with the batch.
    """
    conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
    try:
        yield conn
        conn.execute("COMMIT")
    except BaseException:
        if conn.in_transaction:
            # an expired deadline() would interrupt the ROLLBACK itself
            conn.set_progress_handler(None, 0)
            conn.execute("ROLLBACK")
        raise


@contextmanager
def deadline(conn: sqlite3.Connection, seconds: float | None, every_n_ops: int = 1000) -> Iterator[sqlite3.Connection]:
    """
    Abort in-flight statements on conn once `seconds` have elapsed.

    sqlite calls the progress handler every `every_n_ops` VM instructions; a
    truthy return interrupts the statement with OperationalError("interrupted").
    seconds=None disables the deadline.
    """
    if seconds is None:
        yield conn
        return
    expires_at = time.monotonic() + float(seconds)
    conn.set_progress_handler(lambda: 1 if time.monotonic() >= expires_at else 0, every_n_ops)
    try:
        yield conn
    finally:
        conn.set_progress_handler(None, every_n_ops)


def ensure_schema(conn: sqlite3.Connection):
    conn.executescript(SCHEMA)


def seed_sample_data(conn: sqlite3.Connection):
    conn.executemany(
        "INSERT OR IGNORE INTO books (id, title, has_sales) VALUES (?, ?, ?)",
        SAMPLE_BOOKS,
    )
    conn.executemany(
        "INSERT OR IGNORE INTO accounts (id, name, email) VALUES (?, ?, ?)",
        SAMPLE_ACCOUNTS,
    )


def table_counts(conn: sqlite3.Connection) -> dict[str, int]:
    return {
        t: int(conn.execute(f"SELECT COUNT(1) AS c FROM {t}").fetchone()["c"])
        for t in ("books", "accounts")
    }
