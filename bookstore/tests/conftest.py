import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    base = tmp_path_factory.mktemp("db")
    path = base / "bookstore_test.db"
    # Point the app to this temp DB and away from any real config.yaml
    os.environ["BOOKSTORE_DB_PATH"] = str(path)
    os.environ["BOOKSTORE_CONFIG"] = str(base / "missing-config.yaml")
    from bookstore.db import get_conn, ensure_schema
    from bookstore.logs import ensure_log_schema
    with get_conn(str(path)) as conn:
        ensure_schema(conn)
    ensure_log_schema()
    return str(path)


@pytest.fixture()
def client(tmp_db_path):
    # startup hooks are not run here, so no sample rows get seeded
    from bookstore.api import app
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture()
def conn(tmp_db_path):
    from bookstore.db import get_conn
    with get_conn() as c:
        yield c


@pytest.fixture()
def make_books(conn):
    def _make(*specs):
        ids = []
        for title, has_sales in specs:
            cur = conn.execute(
                "INSERT INTO books (title, has_sales) VALUES (?, ?)", (title, 1 if has_sales else 0)
            )
            ids.append(cur.lastrowid)
        return ids
    return _make


@pytest.fixture()
def many_books(conn):
    """Enough rows that a filtered scan outlasts one progress-handler tick."""
    from bookstore.db import transaction
    with transaction(conn):
        conn.executemany("INSERT INTO books (title) VALUES (?)", [(f"Book {i}",) for i in range(5000)])
    return 5000


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Clean tables before each test for isolation
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("BOOKSTORE_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    tables = ["books", "accounts", "operation_log", "sqlite_sequence"]
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in tables:
            try:
                conn.execute(f"DELETE FROM {t}")
            except sqlite3.OperationalError:
                pass
        conn.commit()
    finally:
        conn.close()
    yield
