import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from config import get_search_settings
from db.database import get_db
from models.search import (
    RateLimitStatus,
    SearchCategory,
    SearchRequest,
    SearchResponse,
    SynonymRequest,
    SynonymResponse,
)
from utils.auth import SessionIdentity, get_optional_session, require_session
from utils.categories import get_all_categories
from utils.errors import ConfigurationError
from utils.orchestrator import perform_smart_search
from utils.rate_limit import check_rate_limit
from utils.synonyms import find_synonyms

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=SearchResponse)
async def search_quotes(
    body: SearchRequest,
    identity: Optional[SessionIdentity] = Depends(get_optional_session),
    conn = Depends(get_db),
):
    """Search quotes for a life situation; may call the generation service."""
    query = body.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Query is required")
    try:
        return await asyncio.to_thread(
            perform_smart_search,
            conn,
            query,
            body.language.value,
            identity.user_id if identity else None,
            identity.is_premium if identity else False,
            None,
            get_search_settings(),
        )
    except ConfigurationError as e:
        logger.error(f"Search unavailable: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.get("/rate-limit", response_model=RateLimitStatus)
async def rate_limit_status(
    identity: SessionIdentity = Depends(require_session),
    conn = Depends(get_db),
):
    return check_rate_limit(conn, identity.user_id, settings=get_search_settings())


@router.get("/categories", response_model=List[SearchCategory])
async def list_categories(conn = Depends(get_db)):
    return get_all_categories(conn)


@router.post("/synonyms", response_model=SynonymResponse)
async def expand_synonyms(body: SynonymRequest, conn = Depends(get_db)):
    return find_synonyms(conn, body.terms, body.language.value)
