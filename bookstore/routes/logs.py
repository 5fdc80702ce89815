from __future__ import annotations

from fastapi import APIRouter, HTTPException

from ..errors import RepositoryError
from ..logs import search_logs

router = APIRouter()


@router.get("/api/logs/search")
def api_logs_search(
    page: int = 1,
    size: int = 20,
    action: str | None = None,
    query: str | None = None,
    ts_from: str | None = None,
    ts_to: str | None = None,
):
    try:
        total, items = search_logs(query, action, ts_from, ts_to, max(page, 1), max(size, 1))
    except RepositoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"total": total, "items": items, "page": max(page, 1), "size": max(size, 1)}
