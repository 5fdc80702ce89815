"""
Error kinds raised by the repository layer.

Every store failure surfaces as one RepositoryError subclass so callers can
map it to a response without inspecting sqlite3 internals. status_code is the
HTTP status the routes answer with.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Iterator


class RepositoryError(Exception):
    status_code = 500


class NotFound(RepositoryError):
    """Single-entity fetch matched no row."""
    status_code = 404


class InvalidArgument(RepositoryError, ValueError):
    """Malformed identifier, bad paging bounds or unknown filter token (strict mode)."""
    status_code = 400


class ConstraintViolation(RepositoryError):
    status_code = 409


class TransactionFailure(RepositoryError):
    """A multi-statement operation was rolled back. `cause` holds the underlying kind."""
    status_code = 409

    def __init__(self, message: str, cause: RepositoryError | None = None):
        super().__init__(message)
        self.cause = cause


class StoreUnavailable(RepositoryError):
    status_code = 503


class Cancelled(RepositoryError):
    """The statement was interrupted because its deadline passed."""
    status_code = 504


def translate(exc: sqlite3.Error) -> RepositoryError:
    msg = str(exc)
    if isinstance(exc, sqlite3.IntegrityError):
        return ConstraintViolation(msg)
    if isinstance(exc, sqlite3.OperationalError) and "interrupted" in msg.lower():
        return Cancelled(msg)
    return StoreUnavailable(msg)


@contextmanager
def store_errors() -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as e:
        raise translate(e) from e
