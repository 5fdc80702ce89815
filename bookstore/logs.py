import json, time, uuid, datetime as dt
import logging
from typing import Any, Dict, List, Optional, Tuple
from .db import get_conn, transaction
from .errors import store_errors
from .repository.query_builder import build_log_filter

logger = logging.getLogger(__name__)

DDL = """
CREATE TABLE IF NOT EXISTS operation_log (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts TEXT NOT NULL,
  user TEXT NOT NULL,
  action TEXT NOT NULL,
  entity_type TEXT,
  entity_id TEXT,
  request_id TEXT,
  before_json TEXT,
  after_json TEXT,
  payload_json TEXT,
  result TEXT,
  err_msg TEXT,
  latency_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_log_ts ON operation_log(ts);
CREATE INDEX IF NOT EXISTS idx_log_action ON operation_log(action);
"""

_LOG_COLUMNS = (
    "ts", "user", "action", "entity_type", "entity_id", "request_id",
    "before_json", "after_json", "payload_json", "result", "err_msg", "latency_ms",
)
_INSERT_SQL = "INSERT INTO operation_log ({}) VALUES ({})".format(
    ",".join(_LOG_COLUMNS), ",".join(":" + c for c in _LOG_COLUMNS)
)


def ensure_log_schema():
    with get_conn() as conn, store_errors():
        conn.executescript(DDL)


def _dump(obj) -> Optional[str]:
    return json.dumps(obj, ensure_ascii=False, default=str) if obj is not None else None


class LogContext:
    """Audit record for one mutating request; write() persists it to operation_log.

    Services fill in the entity and the before/after snapshots, the route
    records the request payload and decides the result.
    """

    def __init__(self, action: str, user: str = "admin"):
        self.action = action
        self.user = user
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.entity_type: Optional[str] = None
        self.entity_id: Optional[str] = None
        self.before: Any = None
        self.after: Any = None
        self.payload: Any = None

    def set_entity(self, etype: str, eid: str):
        self.entity_type, self.entity_id = etype, eid

    def set_before(self, obj): self.before = obj
    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def _record(self, result: str, err: Optional[str]) -> Dict[str, Any]:
        return {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
            "user": self.user,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "request_id": self.request_id,
            "before_json": _dump(self.before),
            "after_json": _dump(self.after),
            "payload_json": _dump(self.payload),
            "result": result,
            "err_msg": err,
            "latency_ms": int((time.perf_counter() - self.start) * 1000),
        }

    def write(self, result: str = "OK", err: Optional[str] = None):
        """Persist the record; raises StoreUnavailable when the store is gone."""
        if result != "OK":
            logger.warning("%s failed (request_id=%s): %s", self.action, self.request_id, err)
        rec = self._record(result, err)
        with get_conn() as conn, store_errors():
            conn.execute(_INSERT_SQL, rec)


def search_logs(
    q: str | None, action: str | None, ts_from: str | None, ts_to: str | None, page: int, size: int
) -> Tuple[int, List[Dict[str, Any]]]:
    """Newest first. Returns (total matching rows, rows on the requested page)."""
    wh, params = build_log_filter(q, action, ts_from, ts_to)
    with get_conn() as conn, store_errors(), transaction(conn, immediate=False):
        total = int(conn.execute(f"SELECT COUNT(1) AS cnt FROM operation_log{wh}", params).fetchone()["cnt"])
        rows = conn.execute(
            f"SELECT * FROM operation_log{wh} ORDER BY ts DESC, id DESC LIMIT ? OFFSET ?",
            [*params, size, (page - 1) * size],
        ).fetchall()
    return total, [dict(r) for r in rows]
