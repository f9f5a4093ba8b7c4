from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from db.database import get_db
from models.quote import Quote
from models.search import Language
from utils.auth import SessionIdentity, get_optional_session, require_session
from utils.daily import get_daily_quote
from utils.history import record_quote_history
from utils.quotes import add_favorite, get_favorites, get_quote, remove_favorite

router = APIRouter()
favorites_router = APIRouter()


@router.get("/daily", response_model=Quote)
async def daily_quote(
    language: Language = Query(default=Language.EN),
    identity: Optional[SessionIdentity] = Depends(get_optional_session),
    conn = Depends(get_db),
):
    """Quote of the day, the same for everyone per date and language."""
    quote = get_daily_quote(conn, language.value, identity.user_id if identity else None)
    if not quote:
        raise HTTPException(status_code=404, detail="No quotes available")
    return quote


@router.get("/{quote_id}", response_model=Quote)
async def quote_detail(quote_id: int, conn = Depends(get_db)):
    quote = get_quote(conn, quote_id)
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return quote


@router.post("/{quote_id}/seen")
async def mark_seen(
    quote_id: int,
    identity: SessionIdentity = Depends(require_session),
    conn = Depends(get_db),
):
    if not get_quote(conn, quote_id):
        raise HTTPException(status_code=404, detail="Quote not found")
    return record_quote_history(conn, identity.user_id, quote_id)


@favorites_router.get("", response_model=List[Quote])
async def list_favorites(
    identity: SessionIdentity = Depends(require_session),
    conn = Depends(get_db),
):
    return get_favorites(conn, identity.user_id)


@favorites_router.post("/{quote_id}")
async def create_favorite(
    quote_id: int,
    identity: SessionIdentity = Depends(require_session),
    conn = Depends(get_db),
):
    if not get_quote(conn, quote_id):
        raise HTTPException(status_code=404, detail="Quote not found")
    return add_favorite(conn, identity.user_id, quote_id)


@favorites_router.delete("/{quote_id}")
async def delete_favorite(
    quote_id: int,
    identity: SessionIdentity = Depends(require_session),
    conn = Depends(get_db),
):
    return remove_favorite(conn, identity.user_id, quote_id)
