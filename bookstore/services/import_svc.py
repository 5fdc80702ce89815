"""
Folder-based bulk import: every *.txt file in the import folder becomes a book
titled after the file name, then moves to the processed sub-folder.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from ..db import get_conn
from ..domain.models import Book
from ..errors import RepositoryError
from ..logs import LogContext
from ..repository import book_repo
from .config_svc import get_config

logger = logging.getLogger(__name__)


def import_books_from_folder(log: LogContext, import_dir: str | os.PathLike | None = None) -> dict:
    cfg = get_config()
    src = Path(import_dir or cfg["import_dir"])
    processed = src / cfg["processed_subdir"]
    # raises OSError when the folders cannot be created; the route answers 500
    processed.mkdir(parents=True, exist_ok=True)

    added, failed, moved = 0, 0, 0
    errs = []
    files = sorted(p for p in src.iterdir() if p.is_file() and p.name.endswith(".txt"))
    with get_conn() as conn:
        for path in files:
            title = path.name[: -len(".txt")]
            try:
                book_repo.create_book(conn, Book(title=title, has_sales=False))
            except RepositoryError as e:
                logger.warning("failed to create book from %s: %s", path.name, e)
                failed += 1
                errs.append({"file": path.name, "error": str(e)})
                continue
            added += 1
            try:
                path.rename(processed / path.name)
                moved += 1
            except OSError as e:
                # the book is already stored; leave the file where it is
                logger.error("failed to move processed file %s: %s", path.name, e)

    res = {"added": added, "failed": failed, "moved": moved, "errors": errs}
    log.set_payload({"import_dir": str(src)})
    log.set_after(res)
    logger.info("imported %d books from %s", added, src)
    return res
