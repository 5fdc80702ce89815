from __future__ import annotations

from typing import Any, Iterable

from ..db import get_conn, deadline
from ..logs import LogContext
from ..domain.models import Book
from ..domain.pagination import compute_pagination, page_offset
from ..repository import book_repo
from ..repository.query_builder import FILTER_ALL
from .config_svc import get_config


def get_book(book_id: int) -> Book:
    with get_conn() as conn:
        return book_repo.get_book(conn, book_id)


def list_books_page(page: int, search: str = "", filter: str = FILTER_ALL, size: int | None = None) -> dict[str, Any]:
    """One page of the books listing plus the pagination controls for it.

    page is expected to be >= 1 already (routes clamp it).
    """
    cfg = get_config()
    size = size or cfg["page_size"]
    with get_conn() as conn:
        with deadline(conn, cfg["query_timeout_s"]):
            result = book_repo.list_books(conn, size, page_offset(page, size), search, filter)
    pagination = compute_pagination(result.total_count, size, page)
    return {
        "books": [b.to_dict() for b in result.books],
        "total": result.total_count,
        "pagination": pagination.to_dict(),
        "no_books": len(result.books) == 0,
        "search": search,
        "filter": filter,
    }


def create_book(title: str, has_sales: bool, log: LogContext) -> Book:
    with get_conn() as conn:
        book = book_repo.create_book(conn, Book(title=title, has_sales=has_sales))
    log.set_entity("BOOK", str(book.id))
    log.set_after(book.to_dict())
    return book


def update_book(book_id: int, title: str, has_sales: bool, log: LogContext) -> Book:
    """Fetch-then-replace, so an unknown id raises NotFound here."""
    with get_conn() as conn:
        before = book_repo.get_book(conn, book_id)
        after = Book(id=book_id, title=title, has_sales=has_sales)
        book_repo.update_book(conn, after)
    log.set_entity("BOOK", str(book_id))
    log.set_before(before.to_dict())
    log.set_after(after.to_dict())
    return after


def delete_books(ids: list[int], log: LogContext) -> int:
    with get_conn() as conn:
        deleted = book_repo.delete_books(conn, ids)
    log.set_after({"ids": ids, "deleted": deleted})
    return deleted


def bulk_update_sales(ids: list[int], has_sales: bool, log: LogContext) -> int:
    with get_conn() as conn:
        updated = book_repo.bulk_update_sales_status(conn, ids, has_sales)
    log.set_after({"ids": ids, "has_sales": has_sales, "updated": updated})
    return updated


def bulk_edit_books(books: Iterable[Book], log: LogContext) -> int:
    books = list(books)
    with get_conn() as conn:
        changed = book_repo.bulk_update_books(conn, books)
    log.set_after({"books": [b.to_dict() for b in books], "changed": changed})
    return changed


def bulk_edit_candidates(selected_ids: list[int]) -> dict[str, Any]:
    """Books offered on the bulk edit form, with the pre-selected ids marked."""
    cfg = get_config()
    with get_conn() as conn:
        result = book_repo.list_books(conn, cfg["bulk_edit_limit"], 0, "", FILTER_ALL)
    selected = set(selected_ids)
    return {
        "books": [b.to_dict() for b in result.books],
        "selected_ids": sorted(selected),
    }
