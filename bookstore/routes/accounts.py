from fastapi import APIRouter, HTTPException

from ..errors import RepositoryError
from ..services.account_svc import get_account, list_accounts

router = APIRouter()


@router.get("/api/accounts")
def api_accounts_list():
    try:
        items = list_accounts()
    except RepositoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"accounts": items, "page": "accounts", "no_accounts": len(items) == 0}


@router.get("/api/accounts/{account_id}")
def api_account_view(account_id: int):
    try:
        account = get_account(account_id)
    except RepositoryError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"account": account.to_dict(), "page": "accounts"}
