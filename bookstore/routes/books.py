from __future__ import annotations

import logging
from typing import Dict, List, Union

from fastapi import APIRouter, HTTPException, Query, Response
from pydantic import BaseModel

from ..errors import RepositoryError
from ..logs import LogContext
from ..domain.models import Book
from ..repository.query_builder import FILTER_ALL
from ..services.book_svc import (
    get_book,
    list_books_page,
    create_book,
    update_book,
    delete_books,
    bulk_update_sales,
    bulk_edit_books,
    bulk_edit_candidates,
)
from ..services.import_svc import import_books_from_folder

logger = logging.getLogger(__name__)

router = APIRouter()


class BookForm(BaseModel):
    title: str = ""
    # checkbox semantics: "on" (or true) means on sale, anything else means not
    has_sales: Union[bool, str, None] = None


class BookIdsForm(BaseModel):
    book_ids: List[str] = []


class BulkSalesForm(BookIdsForm):
    action: str = ""


class BulkEditForm(BaseModel):
    books: Dict[str, BookForm] = {}


def _checked(v) -> bool:
    if isinstance(v, bool):
        return v
    return v == "on"


def _parse_ids(raw: List[str]) -> List[int]:
    try:
        return [int(s) for s in raw]
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="Invalid book ID.")


def _refresh(response: Response, **extra) -> dict:
    response.headers["HX-Refresh"] = "true"
    return {"message": "ok", "refresh": True, **extra}


def _write_failure(log: LogContext, err: str):
    try:
        log.write("ERROR", err)
    except RepositoryError as e:
        # the store that failed the request usually cannot take the log row either
        logger.error("%s: operation log not written (%s); request failed with: %s", log.action, e, err)


def _http_error(log: LogContext, e: Exception) -> HTTPException:
    if isinstance(e, RepositoryError):
        _write_failure(log, str(e))
        return HTTPException(status_code=e.status_code, detail=str(e))
    _write_failure(log, "internal error")
    return HTTPException(status_code=500, detail="internal error")


@router.get("/api/books")
def api_books_list(page: str = "1", search: str = "", filter: str = FILTER_ALL):
    try:
        p = int(page)
    except ValueError:
        p = 1
    if p < 1:
        p = 1
    try:
        return list_books_page(p, search, filter)
    except RepositoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/api/books/create")
def api_book_create_form():
    return {"fields": ["title", "has_sales"], "page": "books"}


@router.post("/api/books/create", status_code=201)
def api_book_create(body: BookForm):
    if body.title == "":
        raise HTTPException(status_code=400, detail="Title cannot be empty")
    log = LogContext("CREATE_BOOK")
    log.set_payload(body.model_dump())
    try:
        book = create_book(body.title, _checked(body.has_sales), log)
        log.write("OK")
        return {"message": "ok", "book": book.to_dict()}
    except Exception as e:
        raise _http_error(log, e) from e


@router.post("/api/books/process-folder")
def api_books_process_folder(response: Response):
    log = LogContext("IMPORT_BOOKS_FOLDER")
    try:
        res = import_books_from_folder(log)
        log.write("OK")
    except OSError as e:
        _write_failure(log, str(e))
        raise HTTPException(status_code=500, detail="Could not read import directory.")
    except Exception as e:
        raise _http_error(log, e) from e
    return _refresh(
        response,
        added=res["added"],
        failed=res["failed"],
        detail=f"Successfully processed and added {res['added']} new books.",
    )


@router.post("/api/books/bulk-update-sales")
def api_books_bulk_update_sales(body: BulkSalesForm, response: Response):
    if not body.book_ids:
        raise HTTPException(status_code=400, detail="Please select at least one book.")
    if body.action == "add":
        has_sales = True
    elif body.action == "remove":
        has_sales = False
    else:
        raise HTTPException(status_code=400, detail="Invalid action.")
    ids = _parse_ids(body.book_ids)

    log = LogContext("BULK_UPDATE_SALES")
    log.set_payload(body.model_dump())
    try:
        updated = bulk_update_sales(ids, has_sales, log)
        log.write("OK")
    except Exception as e:
        raise _http_error(log, e) from e
    return _refresh(response, updated=updated)


@router.get("/api/books/bulk-edit")
def api_books_bulk_edit_form(book_ids: List[str] = Query(default=[])):
    if not book_ids:
        return api_books_list()
    selected = []
    for s in book_ids:
        try:
            i = int(s)
        except ValueError:
            continue
        if i > 0:
            selected.append(i)
    try:
        return bulk_edit_candidates(selected)
    except RepositoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/api/books/bulk-edit")
def api_books_bulk_edit(body: BulkEditForm, response: Response):
    books = []
    for id_str, data in body.books.items():
        try:
            book_id = int(id_str)
        except ValueError:
            continue
        if book_id > 0:
            books.append(Book(id=book_id, title=data.title, has_sales=_checked(data.has_sales)))

    log = LogContext("BULK_EDIT_BOOKS")
    log.set_payload(body.model_dump())
    try:
        changed = bulk_edit_books(books, log)
        log.write("OK")
    except Exception as e:
        raise _http_error(log, e) from e
    return _refresh(response, changed=changed)


@router.post("/api/books/delete")
def api_books_delete(body: BookIdsForm, response: Response):
    if not body.book_ids:
        raise HTTPException(status_code=400, detail="Please select at least one book to delete.")
    ids = _parse_ids(body.book_ids)

    log = LogContext("DELETE_BOOKS")
    log.set_payload(body.model_dump())
    try:
        deleted = delete_books(ids, log)
        log.write("OK")
    except Exception as e:
        raise _http_error(log, e) from e
    return _refresh(response, deleted=deleted)


@router.get("/api/books/{book_id}")
def api_book_view(book_id: int, edit: str = ""):
    try:
        book = get_book(book_id)
    except RepositoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"book": book.to_dict(), "page": "books", "editing": edit == "true"}


@router.post("/api/books/{book_id}")
def api_book_update(book_id: int, body: BookForm):
    if body.title == "":
        raise HTTPException(status_code=400, detail="Title cannot be empty")
    log = LogContext("UPDATE_BOOK")
    log.set_payload({"id": book_id, **body.model_dump()})
    try:
        book = update_book(book_id, body.title, _checked(body.has_sales), log)
        log.write("OK")
        return {"message": "ok", "book": book.to_dict()}
    except Exception as e:
        raise _http_error(log, e) from e
