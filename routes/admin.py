import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from db.database import get_db, reset_user_data
from models.search import Language
from utils.ai_quotes import generate_quote
from utils.auth import require_admin
from utils.errors import ConfigurationError, GenerationError
from utils.seed import seed_all
from utils.translations import translate_existing_quotes

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


class BackfillRequest(BaseModel):
    dry_run: bool = False
    limit: int = Field(default=50, ge=1, le=200)


class GenerateRequest(BaseModel):
    language: Language = Language.EN
    search_query: Optional[str] = Field(default=None, max_length=500)


@router.post("/seed")
async def seed(conn = Depends(get_db)):
    return seed_all(conn)


@router.post("/reset")
async def reset(conn = Depends(get_db)):
    deleted = reset_user_data(conn)
    logger.warning(f"User data reset: {deleted}")
    return {"success": True, "deleted": deleted}


@router.post("/translations/backfill")
async def backfill_translations(body: BackfillRequest, conn = Depends(get_db)):
    try:
        return await asyncio.to_thread(translate_existing_quotes, conn, body.dry_run, body.limit)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.post("/quotes/generate")
async def generate(body: GenerateRequest, conn = Depends(get_db)):
    try:
        return await asyncio.to_thread(generate_quote, conn, body.language.value, body.search_query)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except GenerationError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
