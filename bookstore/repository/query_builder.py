"""
WHERE-clause assembly for the books listing and the operation log search.

The same (where_sql, params) pair feeds both the COUNT and the paged SELECT,
so the total and the page are always computed over one predicate.
"""
from __future__ import annotations

from typing import List, Tuple

from ..errors import InvalidArgument

FILTER_ALL = "all"
FILTER_ON_SALE = "on_sale"
FILTER_NOT_ON_SALE = "not_on_sale"
FILTERS = (FILTER_ALL, FILTER_ON_SALE, FILTER_NOT_ON_SALE)

_LIKE_ESCAPE = "\\"
_LOG_TEXT_COLUMNS = ("payload_json", "before_json", "after_json")


def escape_like(text: str) -> str:
    """Escape LIKE metacharacters so the search text matches literally."""
    return (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


def build_book_filter(search: str | None, filter: str | None, strict: bool = False) -> Tuple[str, List[object]]:
    where: list[str] = []
    params: list[object] = []

    if search:
        where.append(f"title LIKE ? ESCAPE '{_LIKE_ESCAPE}'")
        params.append(f"%{escape_like(search)}%")

    if filter == FILTER_ON_SALE:
        where.append("has_sales = 1")
    elif filter == FILTER_NOT_ON_SALE:
        where.append("has_sales = 0")
    elif strict and filter not in (None, "", FILTER_ALL):
        raise InvalidArgument(f"unknown filter: {filter!r}")

    wh = " WHERE " + " AND ".join(where) if where else ""
    return wh, params


def build_log_filter(
    q: str | None, action: str | None, ts_from: str | None, ts_to: str | None
) -> Tuple[str, List[object]]:
    """Text search over the JSON columns plus exact action and an inclusive ts range."""
    where: list[str] = []
    params: list[object] = []
    if q:
        like = f"%{escape_like(q)}%"
        where.append(
            "(" + " OR ".join(f"{col} LIKE ? ESCAPE '{_LIKE_ESCAPE}'" for col in _LOG_TEXT_COLUMNS) + ")"
        )
        params.extend([like] * len(_LOG_TEXT_COLUMNS))
    if action:
        where.append("action = ?")
        params.append(action)
    if ts_from:
        where.append("ts >= ?")
        params.append(ts_from)
    if ts_to:
        where.append("ts <= ?")
        params.append(ts_to)
    wh = " WHERE " + " AND ".join(where) if where else ""
    return wh, params


def in_placeholders(count: int) -> str:
    """'?,?,?' for an IN (...) list of `count` bound values."""
    if count < 1:
        raise InvalidArgument("IN list needs at least one value")
    return ",".join(["?"] * count)
