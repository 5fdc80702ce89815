"""Bookstore admin: books/accounts CRUD over SQLite behind a FastAPI app."""

__version__ = "0.1.0"
