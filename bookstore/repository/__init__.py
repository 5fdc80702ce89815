"""Repository layer: DB access helpers (SQLite).

Functions take an open connection first and raise bookstore.errors kinds,
so services never see SQL strings or sqlite3 exceptions.
"""
from __future__ import annotations

