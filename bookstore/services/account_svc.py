from __future__ import annotations

from ..db import get_conn
from ..domain.models import Account
from ..repository import account_repo


def get_account(account_id: int) -> Account:
    with get_conn() as conn:
        return account_repo.get_account(conn, account_id)


def list_accounts() -> list[dict]:
    with get_conn() as conn:
        return [a.to_dict() for a in account_repo.list_accounts(conn)]
