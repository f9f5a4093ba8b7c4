import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Set

from models.ai import AIQuoteBundle, AIQuoteCandidate, ParseFailure
from utils.ai_parsing import parse_ai_response, validate_candidates
from utils.contexts import add_quote_context_mapping, save_search_context
from utils.errors import AIRateLimitError, GenerationError
from utils.history import record_user_search
from utils.llm import call_llm
from utils.quotes import find_similar_quote, get_quote, insert_quote
from utils.rate_limit import check_rate_limit, increment_ai_search_count
from utils.retry import with_retry
from utils.search import context_key

logger = logging.getLogger(__name__)

DEFAULT_AI_SCORE = 80
SAME_LANGUAGE_PENALTY = 10
CROSS_LANGUAGE_PENALTY = 15
MIN_RELATED_SCORE = 50
LANGUAGES = ("en", "de")

SEARCH_PROMPT_TEMPLATE = """Find {count} meaningful quotes, Bible verses, or sayings for: "{query}"

For EACH quote you MUST provide both an English ("en") and a German ("de") version.
Every quote object needs "en" and "de" with a non-empty "text" field.

Requirements:
- Authentic quotes with proper attribution, diverse types
- For EACH quote, provide "relevantQueries" in both languages: other short searches this quote answers well

Return ONLY a valid JSON array, no text before or after it:
[
  {{
    "en": {{
      "text": "Quote in English",
      "reference": "Proverbs 3:5",
      "author": "Author or null",
      "type": "quote",
      "context": "English context (2-3 sentences)",
      "explanation": "English explanation (2-3 sentences)",
      "situations": ["situation1", "situation2"],
      "tags": ["tag1", "tag2"],
      "relevantQueries": ["heartbreak", "sadness", "healing"]
    }},
    "de": {{
      "text": "Zitat auf Deutsch",
      "reference": "Sprüche 3:5",
      "context": "Deutscher Kontext (2-3 Sätze)",
      "explanation": "Deutsche Erklärung (2-3 Sätze)",
      "situations": ["Situation1", "Situation2"],
      "tags": ["Schlagwort1", "Schlagwort2"],
      "relevantQueries": ["Liebeskummer", "Traurigkeit", "Heilung"]
    }},
    "relevanceScore": 85
  }}
]

Types: "bible", "quote", "saying", "poem"
relevanceScore: 0-100 based on how well the quote fits the search"""

QUOTE_PROMPT_TEMPLATE = """Generate a meaningful and inspiring quote, Bible verse, or saying {subject}.

You MUST provide the quote in both English ("en") and German ("de"), each with a non-empty "text".

Requirements:
- Must be authentic (real quote from a known person, an actual Bible verse, or a traditional saying)
- Include proper attribution/reference
- Provide context and explanation in both languages

Respond with ONLY a valid JSON object (no markdown):
{{
  "en": {{
    "text": "The quote text in English",
    "reference": "Proverbs 3:5",
    "author": "Author name or null for Bible verses",
    "type": "bible",
    "context": "Brief context in English (2-3 sentences)",
    "explanation": "Why this is meaningful and how to apply it (2-3 sentences)",
    "situations": ["situation1", "situation2"],
    "tags": ["tag1", "tag2"]
  }},
  "de": {{
    "text": "Das Zitat auf Deutsch",
    "reference": "Sprüche 3:5",
    "author": "Autorenname oder null für Bibelverse",
    "type": "bible",
    "context": "Kurzer Kontext auf Deutsch (2-3 Sätze)",
    "explanation": "Warum dies bedeutsam ist (2-3 Sätze)",
    "situations": ["Situation1", "Situation2"],
    "tags": ["Schlagwort1", "Schlagwort2"]
  }}
}}

type must be one of: "bible", "quote", "saying", "poem"."""


def build_search_prompt(query: str, count: int) -> str:
    return SEARCH_PROMPT_TEMPLATE.format(count=count, query=query.replace('"', "'"))


def build_quote_prompt(search_query: Optional[str] = None) -> str:
    if search_query:
        subject = f'for the search query: "{search_query}"'
    else:
        subject = "that is meaningful and inspiring"
    return QUOTE_PROMPT_TEMPLATE.format(subject=subject)


def _other_language(language: str) -> str:
    return "en" if language == "de" else "de"


def _translation_payload(bundle: AIQuoteBundle) -> Dict[str, Any]:
    return {
        "text": bundle.text,
        "reference": bundle.reference,
        "context": bundle.context,
        "explanation": bundle.explanation,
        "situations": bundle.situations,
        "tags": bundle.tags,
    }


def _store_candidate(
    conn, candidate: AIQuoteCandidate, language: str, ai_prompt: str, extra_tags: List[str]
) -> int:
    """Insert the candidate as a quote, or return a near-identical stored one."""
    primary_lang = "de" if language == "de" else "en"
    secondary_lang = _other_language(primary_lang)
    primary = candidate.bundle(primary_lang)
    secondary = candidate.bundle(secondary_lang)

    existing_id = find_similar_quote(conn, primary.text, primary_lang)
    if existing_id is not None:
        logger.info(f"AI quote matches stored quote {existing_id}, reusing it")
        return existing_id

    tags = list(primary.tags)
    for tag in extra_tags:
        if tag and tag not in tags:
            tags.append(tag)
    return insert_quote(
        conn,
        text=primary.text,
        language=primary_lang,
        source="ai_generated",
        author=primary.author or secondary.author,
        reference=primary.reference or secondary.reference,
        category=primary.type or secondary.type,
        context=primary.context,
        explanation=primary.explanation,
        situations=primary.situations,
        tags=tags,
        translations={secondary_lang: _translation_payload(secondary)},
        ai_prompt=ai_prompt,
    )


def related_score(base_score: float, same_language: bool) -> float:
    penalty = SAME_LANGUAGE_PENALTY if same_language else CROSS_LANGUAGE_PENALTY
    return max(MIN_RELATED_SCORE, base_score - penalty)


def _map_related_queries(
    conn,
    quote_id: int,
    candidate: AIQuoteCandidate,
    language: str,
    main_key: str,
    base_score: float,
    category_id: Optional[int] = None,
) -> int:
    mapped = 0
    for query_language in LANGUAGES:
        for related in candidate.bundle(query_language).relevant_queries:
            key = context_key(related)
            if not key or (query_language == language and key == main_key):
                continue
            related_id = save_search_context(conn, related, key, query_language, category_id, commit=False)
            add_quote_context_mapping(
                conn,
                quote_id,
                related_id,
                related_score(base_score, query_language == language),
                True,
                commit=False,
            )
            mapped += 1
    return mapped


def _generate_candidates(prompt: str, generate_text: Callable[[str], str]) -> List[AIQuoteCandidate]:
    content = generate_text(prompt)
    parsed = parse_ai_response(content)
    if isinstance(parsed, ParseFailure):
        raise GenerationError(f"Could not parse AI response: {parsed.reason}")
    candidates = validate_candidates(parsed.candidates)
    if not candidates:
        raise GenerationError("AI response contained no valid bilingual quotes")
    return candidates


def _in_transaction(conn, write: Callable[[], Any]) -> Any:
    """Run write and commit it; on any error roll back and re-raise."""
    try:
        result = write()
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    return result


def generate_search_quotes(
    conn,
    query: str,
    language: str,
    count: int = 3,
    user_id: Optional[str] = None,
    category_id: Optional[int] = None,
    generate_text: Optional[Callable[[str], str]] = None,
    today: Optional[date] = None,
    settings: Optional[Dict[str, Any]] = None,
    excluded: Optional[Set[int]] = None,
) -> Dict[str, Any]:
    """Generate quotes for a search and store them for future cache hits.

    Every surviving candidate becomes a quote mapped to the search's context
    (score from the model, or 80) and to a context per related query with a
    reduced score, so later searches for those phrases need no new call.
    A candidate that matches a stored quote in excluded (the user's favorites
    and recently shown quotes) is still mapped but left out of the result.

    Raises AIRateLimitError when the user's AI quota is used up and
    GenerationError when the model output is unusable.
    """
    generate_text = generate_text or call_llm
    excluded = excluded or set()
    if user_id:
        status = check_rate_limit(conn, user_id, today, settings)
        if not status.can_use_ai:
            raise AIRateLimitError()
        increment_ai_search_count(conn, user_id, today)

    candidates = _generate_candidates(build_search_prompt(query, count), generate_text)
    main_key = context_key(query)
    ai_prompt = f"Search: {query}"

    def persist() -> Dict[str, Any]:
        context_id = save_search_context(conn, query, main_key, language, category_id, commit=False)
        stored: Dict[int, float] = {}
        for candidate in candidates:
            score = candidate.relevance_score
            if score is None:
                score = DEFAULT_AI_SCORE
            quote_id = _store_candidate(conn, candidate, language, ai_prompt, [query.lower().strip()])
            add_quote_context_mapping(conn, quote_id, context_id, score, True, commit=False)
            _map_related_queries(conn, quote_id, candidate, language, main_key, score, category_id)
            stored[quote_id] = max(score, stored.get(quote_id, 0))
        return {"context_id": context_id, "scores": stored}

    persisted = with_retry(lambda: _in_transaction(conn, persist))
    context_id = persisted["context_id"]
    if user_id:
        record_user_search(conn, user_id, context_id)

    quotes = []
    for quote_id, score in persisted["scores"].items():
        if quote_id in excluded:
            logger.info(f"Skipping AI quote {quote_id}: favorite or recently shown")
            continue
        quote = get_quote(conn, quote_id)
        if quote:
            quotes.append({**quote, "relevance_score": score, "is_ai_generated": True})
    quotes.sort(key=lambda q: q["relevance_score"], reverse=True)
    logger.info(f"Generated {len(quotes)} AI quote(s) for context {context_id}")
    return {
        "quotes": quotes,
        "count": len(quotes),
        "context_id": context_id,
        "was_ai_generated": True,
    }


def generate_quote(
    conn,
    language: str,
    search_query: Optional[str] = None,
    generate_text: Optional[Callable[[str], str]] = None,
) -> Dict[str, Any]:
    """Generate one bilingual quote and add it to the store."""
    generate_text = generate_text or call_llm
    candidates = _generate_candidates(build_quote_prompt(search_query), generate_text)
    ai_prompt = f"Search: {search_query}" if search_query else "Daily quote generation"
    extra_tags = [search_query.lower().strip()] if search_query else []

    def persist() -> int:
        return _store_candidate(conn, candidates[0], language, ai_prompt, extra_tags)

    return get_quote(conn, with_retry(lambda: _in_transaction(conn, persist)))
