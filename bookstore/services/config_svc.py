# bookstore/services/config_svc.py
import os

from ..db import read_config_yaml

DEFAULTS = {
    "page_size": 5,
    "bulk_edit_limit": 100,
    # folder scanned by the bulk import; imported files move to <import_dir>/<processed_subdir>
    "import_dir": "./import",
    "processed_subdir": "processed",
    # seconds before a listing query is interrupted; None disables the deadline
    "query_timeout_s": None,
    "seed_sample_data": True,
}

_ENV_OVERRIDES = {
    "BOOKSTORE_PAGE_SIZE": "page_size",
    "BOOKSTORE_IMPORT_DIR": "import_dir",
    "BOOKSTORE_QUERY_TIMEOUT_S": "query_timeout_s",
}


def _to_bool(v) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)


def get_config() -> dict:
    """DEFAULTS <- config.yaml <- environment, coerced to the right types."""
    cfg = dict(DEFAULTS)
    cfg.update({k: v for k, v in read_config_yaml().items() if k in DEFAULTS})
    for env_key, key in _ENV_OVERRIDES.items():
        v = os.environ.get(env_key)
        if v not in (None, ""):
            cfg[key] = v

    timeout = cfg.get("query_timeout_s")
    out = {
        "page_size": int(cfg["page_size"]),
        "bulk_edit_limit": int(cfg["bulk_edit_limit"]),
        "import_dir": str(cfg["import_dir"]),
        "processed_subdir": str(cfg["processed_subdir"]),
        "query_timeout_s": float(timeout) if timeout not in (None, "") else None,
        "seed_sample_data": _to_bool(cfg["seed_sample_data"]),
    }
    if out["page_size"] <= 0:
        raise ValueError("page_size must be positive")
    return out
