import logging
import random
from datetime import date
from typing import Any, Callable, Dict, Optional

from config import SEARCH_DEFAULTS
from utils.ai_quotes import generate_search_quotes
from utils.contexts import remember_results
from utils.errors import (
    AI_RATE_LIMIT_EXCEEDED,
    SEARCH_RATE_LIMIT_EXCEEDED,
    AIRateLimitError,
    ConfigurationError,
    GenerationError,
)
from utils.history import get_excluded_quote_ids, record_user_search
from utils.llm import call_llm
from utils.rate_limit import check_rate_limit, increment_search_count
from utils.search import context_key
from utils.smart_search import smart_search

logger = logging.getLogger(__name__)


def _partial(found: Dict[str, Any], rate_limit, error: Optional[str] = None) -> Dict[str, Any]:
    quotes = found["quotes"]
    result = {
        "quotes": quotes,
        "source": "database" if quotes else "insufficient",
        "rate_limit": rate_limit,
        "was_ai_generated": False,
        "category": found["category"],
        "context_id": found["context_id"],
    }
    if error:
        result["error"] = error
    return result


def perform_smart_search(
    conn,
    query: str,
    language: str,
    user_id: Optional[str] = None,
    is_premium: bool = False,
    generate_text: Optional[Callable[[str], str]] = None,
    settings: Optional[Dict[str, Any]] = None,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> Dict[str, Any]:
    """Run one search request end to end.

    Quota check and increment, cache tiers, then AI generation when the
    cache is insufficient and the user still has AI quota. AI failures fall
    back to whatever the cache found; a missing API key is not caught.
    """
    settings = {**SEARCH_DEFAULTS, **(settings or {})}
    generate_text = generate_text or call_llm

    rate_limit = None
    if user_id:
        rate_limit = check_rate_limit(conn, user_id, today, settings)
        if not rate_limit.can_search:
            logger.info(f"Search rejected for {user_id}: daily limit reached")
            return {
                "quotes": [],
                "source": "rate_limited",
                "rate_limit": rate_limit,
                "was_ai_generated": False,
                "category": None,
                "context_id": None,
                "error": SEARCH_RATE_LIMIT_EXCEEDED,
            }
        increment_search_count(conn, user_id, today)

    found = smart_search(conn, query, language, user_id, is_premium, settings, today, rng)
    category = found["category"]
    category_id = category["id"] if category else None

    if not found["needs_ai"]:
        context_id = remember_results(
            conn, query, context_key(query), language, found["quotes"], category_id
        )
        if user_id and context_id:
            record_user_search(conn, user_id, context_id)
        return {
            "quotes": found["quotes"],
            "source": found["source"],
            "rate_limit": _refreshed(conn, user_id, today, settings),
            "was_ai_generated": False,
            "category": category,
            "context_id": context_id,
        }

    if not user_id or not rate_limit.can_use_ai:
        return _partial(found, _refreshed(conn, user_id, today, settings))

    try:
        generated = generate_search_quotes(
            conn,
            query,
            language,
            count=settings["ai_quote_count"],
            user_id=user_id,
            category_id=category_id,
            generate_text=generate_text,
            today=today,
            settings=settings,
            excluded=get_excluded_quote_ids(conn, user_id, is_premium, today, settings),
        )
    except AIRateLimitError:
        return _partial(found, _refreshed(conn, user_id, today, settings), AI_RATE_LIMIT_EXCEEDED)
    except GenerationError as e:
        logger.warning(f"AI generation failed for '{query}', returning database results: {e}")
        return _partial(found, _refreshed(conn, user_id, today, settings), str(e))
    except ConfigurationError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error during AI generation for '{query}'")
        return _partial(found, _refreshed(conn, user_id, today, settings), str(e))

    if not generated["quotes"]:
        return _partial(found, _refreshed(conn, user_id, today, settings))

    return {
        "quotes": generated["quotes"][: settings["result_limit"]],
        "source": "ai",
        "rate_limit": _refreshed(conn, user_id, today, settings),
        "was_ai_generated": True,
        "category": category,
        "context_id": generated["context_id"],
    }


def _refreshed(conn, user_id: Optional[str], today: Optional[date], settings: Dict[str, Any]):
    if not user_id:
        return None
    return check_rate_limit(conn, user_id, today, settings)
