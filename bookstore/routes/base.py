from fastapi import APIRouter

from .. import __version__

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/version")
def version():
    return {"app": "bookstore-admin", "version": __version__}

@router.get("/play/{item_type}/{item_id}")
def play(item_type: str, item_id: str):
    return {"message": f"Playing {item_type} with ID {item_id}"}
