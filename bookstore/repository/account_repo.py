from sqlite3 import Connection
from typing import List

from ..domain.models import Account
from ..errors import InvalidArgument, NotFound, store_errors


def get_account(conn: Connection, account_id: int) -> Account:
    if isinstance(account_id, bool) or not isinstance(account_id, int):
        raise InvalidArgument(f"invalid account id: {account_id!r}")
    with store_errors():
        row = conn.execute("SELECT id, name, email FROM accounts WHERE id = ?", (account_id,)).fetchone()
    if row is None:
        raise NotFound(f"account {account_id} not found")
    return Account.from_row(row)


def list_accounts(conn: Connection) -> List[Account]:
    with store_errors():
        rows = conn.execute("SELECT id, name, email FROM accounts ORDER BY id").fetchall()
    return [Account.from_row(r) for r in rows]
