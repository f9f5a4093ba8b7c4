import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from models.ai import AITranslation, ParseFailure
from utils.ai_parsing import parse_ai_response
from utils.errors import GenerationError
from utils.llm import call_llm
from utils.quotes import row_to_quote, update_quote_translations

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {"en": "English", "de": "German"}

TRANSLATION_PROMPT_TEMPLATE = """Translate the following quote/saying from {source} to {target}.

ORIGINAL QUOTE:
{details}

REQUIREMENTS:
- Translate the quote text naturally, preserving the meaning and tone
- If it's a Bible verse, use the standard {target} Bible translation
- Translate all metadata (context, explanation, situations, tags) to {target}

Respond with ONLY a valid JSON object (no markdown):
{{
  "text": "The translated quote text",
  "reference": "Translated reference if applicable",
  "context": "Translated context",
  "explanation": "Translated explanation",
  "situations": ["translated situation 1", "translated situation 2"],
  "tags": ["translated tag 1", "translated tag 2"]
}}"""


def target_language(quote: Dict[str, Any]) -> str:
    return "en" if quote["language"] == "de" else "de"


def quotes_needing_translation(conn, limit: int = 50) -> List[Dict[str, Any]]:
    """AI-generated quotes with no stored text in their other language."""
    cursor = conn.cursor()
    cursor.execute(
        "SELECT * FROM quotes WHERE source = 'ai_generated' ORDER BY id LIMIT ?",
        (min(limit * 3, 200),),
    )
    needed = []
    for row in cursor.fetchall():
        if len(needed) >= limit:
            break
        quote = row_to_quote(row)
        bundle = quote["translations"].get(target_language(quote))
        if not isinstance(bundle, dict) or not bundle.get("text"):
            needed.append(quote)
    return needed


def build_translation_prompt(quote: Dict[str, Any]) -> str:
    lines = [f'Text: "{quote["text"]}"']
    for label, key in (("Reference", "reference"), ("Author", "author"), ("Context", "context"), ("Explanation", "explanation")):
        if quote.get(key):
            lines.append(f"{label}: {quote[key]}")
    if quote.get("situations"):
        lines.append(f"Situations: {', '.join(quote['situations'])}")
    if quote.get("tags"):
        lines.append(f"Tags: {', '.join(quote['tags'])}")
    return TRANSLATION_PROMPT_TEMPLATE.format(
        source=LANGUAGE_NAMES.get(quote["language"], "English"),
        target=LANGUAGE_NAMES[target_language(quote)],
        details="\n".join(lines),
    )


def generate_translation(quote: Dict[str, Any], generate_text: Callable[[str], str]) -> AITranslation:
    parsed = parse_ai_response(generate_text(build_translation_prompt(quote)))
    if isinstance(parsed, ParseFailure) or not parsed.candidates:
        raise GenerationError("Translation response was not valid JSON")
    try:
        return AITranslation.model_validate(parsed.candidates[0])
    except ValidationError as e:
        raise GenerationError("Translation text missing or too short") from e


def translate_existing_quotes(
    conn,
    dry_run: bool = False,
    limit: int = 50,
    generate_text: Optional[Callable[[str], str]] = None,
) -> Dict[str, Any]:
    """Fill in the missing language for AI quotes generated before bilingual output."""
    generate_text = generate_text or call_llm
    quotes = quotes_needing_translation(conn, limit)
    logger.info(f"Found {len(quotes)} quotes needing translation")
    if dry_run:
        return {
            "dry_run": True,
            "quotes_found": len(quotes),
            "quotes": [
                {
                    "id": quote["id"],
                    "text": quote["text"][:50] + "..." if len(quote["text"]) > 50 else quote["text"],
                    "language": quote["language"],
                    "has_translations": bool(quote["translations"]),
                }
                for quote in quotes
            ],
        }

    results = []
    for quote in quotes:
        target = target_language(quote)
        try:
            translation = generate_translation(quote, generate_text)
        except GenerationError as e:
            logger.warning(f"Translation of quote {quote['id']} failed: {e}")
            results.append({"id": quote["id"], "success": False, "error": str(e)})
            continue
        translations = {**quote["translations"], target: translation.model_dump()}
        update_quote_translations(conn, quote["id"], translations)
        conn.commit()
        results.append({"id": quote["id"], "success": True})

    success_count = sum(1 for result in results if result["success"])
    return {
        "dry_run": False,
        "total_processed": len(quotes),
        "success_count": success_count,
        "error_count": len(results) - success_count,
        "results": results,
    }
