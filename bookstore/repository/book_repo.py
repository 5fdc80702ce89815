from __future__ import annotations

import sqlite3
from contextlib import nullcontext
from sqlite3 import Connection
from typing import Iterable, List

from ..db import transaction
from ..domain.models import Book, PaginatedBooks
from ..errors import InvalidArgument, NotFound, TransactionFailure, store_errors, translate
from .query_builder import build_book_filter, in_placeholders

_COLUMNS = "id, title, has_sales"


def _check_id(book_id) -> int:
    if isinstance(book_id, bool) or not isinstance(book_id, int):
        raise InvalidArgument(f"invalid book id: {book_id!r}")
    return book_id


def _check_ids(ids: Iterable[int]) -> List[int]:
    return [_check_id(i) for i in ids]


def get_book(conn: Connection, book_id: int) -> Book:
    _check_id(book_id)
    with store_errors():
        row = conn.execute(f"SELECT {_COLUMNS} FROM books WHERE id = ?", (book_id,)).fetchone()
    if row is None:
        raise NotFound(f"book {book_id} not found")
    return Book.from_row(row)


def create_book(conn: Connection, book: Book) -> Book:
    with store_errors():
        cur = conn.execute(
            "INSERT INTO books (title, has_sales) VALUES (?, ?)",
            (book.title, 1 if book.has_sales else 0),
        )
    return Book(id=int(cur.lastrowid), title=book.title, has_sales=bool(book.has_sales))


def update_book(conn: Connection, book: Book) -> bool:
    """Full replace of title/has_sales. An unknown id is a silent no-op (returns False)."""
    if book.id is None:
        raise InvalidArgument("book id is required for update")
    _check_id(book.id)
    with store_errors():
        cur = conn.execute(
            "UPDATE books SET title = ?, has_sales = ? WHERE id = ?",
            (book.title, 1 if book.has_sales else 0, book.id),
        )
    return cur.rowcount > 0


def delete_books(conn: Connection, ids: Iterable[int]) -> int:
    ids = _check_ids(ids)
    if not ids:
        return 0
    q = "DELETE FROM books WHERE id IN ({})".format(in_placeholders(len(ids)))
    with store_errors():
        cur = conn.execute(q, ids)
    return cur.rowcount


def list_books(conn: Connection, limit: int, offset: int, search: str = "", filter: str = "all") -> PaginatedBooks:
    if limit <= 0:
        raise InvalidArgument("limit must be positive")
    if offset < 0:
        raise InvalidArgument("offset must not be negative")

    wh, params = build_book_filter(search, filter)
    count_sql = f"SELECT COUNT(1) AS cnt FROM books{wh}"
    sql = f"SELECT {_COLUMNS} FROM books{wh} ORDER BY id LIMIT ? OFFSET ?"

    # one read transaction so the count and the page see the same snapshot;
    # a transaction the caller already holds gives that guarantee too
    snapshot = nullcontext(conn) if conn.in_transaction else transaction(conn, immediate=False)
    with store_errors(), snapshot:
        total = int(conn.execute(count_sql, params).fetchone()["cnt"])
        rows = conn.execute(sql, [*params, limit, offset]).fetchall()
    return PaginatedBooks(books=[Book.from_row(r) for r in rows], total_count=total)


def count_books(conn: Connection, search: str = "", filter: str = "all") -> int:
    wh, params = build_book_filter(search, filter)
    with store_errors():
        return int(conn.execute(f"SELECT COUNT(1) AS cnt FROM books{wh}", params).fetchone()["cnt"])


def bulk_update_sales_status(conn: Connection, ids: Iterable[int], status: bool) -> int:
    """Set has_sales for every id in one statement; returns the number of rows touched."""
    ids = _check_ids(ids)
    if not ids:
        return 0
    q = "UPDATE books SET has_sales = ? WHERE id IN ({})".format(in_placeholders(len(ids)))
    with store_errors():
        cur = conn.execute(q, [1 if status else 0, *ids])
    return cur.rowcount


def bulk_update_books(conn: Connection, books: Iterable[Book]) -> int:
    """
    Replace title/has_sales for every book, all-or-nothing.

    Ids with no matching row are skipped like update_book does; any statement
    failure rolls back the whole batch and raises TransactionFailure.
    Returns the number of rows changed.
    """
    books = list(books)
    if not books:
        return 0
    for b in books:
        if b.id is None:
            raise InvalidArgument("every book in a bulk update needs an id")
        _check_id(b.id)

    changed = 0
    try:
        with transaction(conn):
            for b in books:
                cur = conn.execute(
                    "UPDATE books SET title = ?, has_sales = ? WHERE id = ?",
                    (b.title, 1 if b.has_sales else 0, b.id),
                )
                changed += cur.rowcount
    except sqlite3.Error as e:
        cause = translate(e)
        raise TransactionFailure(f"bulk update rolled back: {cause}", cause=cause) from e
    return changed
