"""
FastAPI app entry point aggregating per-domain routers under bookstore/routes.
Run with `uvicorn bookstore.api:app --port 8010`.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI

from . import __version__
from .db import get_conn, ensure_schema, seed_sample_data, table_counts
from .logs import ensure_log_schema
from .services.config_svc import get_config

logger = logging.getLogger(__name__)

app = FastAPI(title="bookstore-admin", version=__version__)


def init_store(seed: bool | None = None) -> dict[str, int]:
    """Create tables (and sample rows when enabled); returns row counts per table."""
    if seed is None:
        seed = get_config()["seed_sample_data"]
    ensure_log_schema()
    with get_conn() as conn:
        ensure_schema(conn)
        if seed:
            seed_sample_data(conn)
        counts = table_counts(conn)
    logger.info("store ready: %s", counts)
    return counts


@app.on_event("startup")
def on_startup():
    init_store()


# Include routers (split by business domain)
from .routes import base as base_routes
from .routes import books as books_routes
from .routes import accounts as accounts_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(books_routes.router)
app.include_router(accounts_routes.router)
app.include_router(logs_routes.router)
