from fastapi import APIRouter, Depends, HTTPException, status

from db.database import get_db
from utils.auth import SessionIdentity, require_session
from utils.history import get_daily_quote_history, get_search_history

router = APIRouter()

FREE_DAILY_HISTORY = 3
PREMIUM_DAILY_HISTORY = 7


@router.get("/daily")
async def daily_history(
    identity: SessionIdentity = Depends(require_session),
    conn = Depends(get_db),
):
    """Recently shown quotes: 3 for free users, 7 for premium."""
    limit = PREMIUM_DAILY_HISTORY if identity.is_premium else FREE_DAILY_HISTORY
    return {
        "entries": get_daily_quote_history(conn, identity.user_id, limit),
        "limit": limit,
        "is_premium": identity.is_premium,
    }


@router.get("/searches")
async def search_history(
    identity: SessionIdentity = Depends(require_session),
    conn = Depends(get_db),
):
    if not identity.is_premium:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Search history is a premium feature")
    return {"entries": get_search_history(conn, identity.user_id)}
