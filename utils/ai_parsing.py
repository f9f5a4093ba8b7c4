"""Recovering JSON from generation output.

Models wrap JSON in markdown fences, leave trailing commas, put raw newlines
inside strings or stop mid-array. The parser tries progressively looser
strategies and reports which one worked.
"""
import json
import logging
import re
from typing import Any, Iterable, List

from pydantic import ValidationError

from models.ai import AIQuoteCandidate, ParseFailure, ParseResult, ParseSuccess

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json|JSON)?")
_TRAILING_COMMA_RE = re.compile(r",\s*([\]}])")


def strip_code_fences(content: str) -> str:
    return _FENCE_RE.sub("", content).strip()


def _as_candidates(data: Any) -> List[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        # {"quotes": [...]} wrapper or a single object
        for key in ("quotes", "results", "items"):
            if isinstance(data.get(key), list):
                return data[key]
        return [data]
    return []


def _cut_to_json(text: str) -> str:
    starts = [i for i in (text.find("["), text.find("{")) if i != -1]
    if not starts:
        return text
    start = min(starts)
    end = text.rfind("]" if text[start] == "[" else "}")
    if end <= start:
        return text[start:]
    return text[start : end + 1]


def _cleaned_parse(content: str) -> Any:
    text = _cut_to_json(strip_code_fences(content))
    text = _TRAILING_COMMA_RE.sub(r"\1", text)
    # strict=False accepts raw control characters (newlines) inside strings
    return json.loads(text, strict=False)


def extract_json_objects(content: str) -> List[dict]:
    """Parse every complete top-level object found by brace depth.

    Objects nested inside a surrounding array count as top level; a
    truncated last object is skipped.
    """
    objects = []
    depth = 0
    start = None
    in_string = False
    escaped = False
    for index, char in enumerate(content):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start is not None:
                chunk = _TRAILING_COMMA_RE.sub(r"\1", content[start : index + 1])
                try:
                    parsed = json.loads(chunk, strict=False)
                except ValueError:
                    parsed = None
                if isinstance(parsed, dict):
                    objects.append(parsed)
                start = None
    return objects


def parse_ai_response(content: str) -> ParseResult:
    """Turn raw model output into candidate dicts (not yet validated)."""
    if not content or not content.strip():
        return ParseFailure("empty response")

    try:
        return ParseSuccess(candidates=_as_candidates(json.loads(content)))
    except ValueError:
        pass

    try:
        candidates = _as_candidates(_cleaned_parse(content))
        logger.info("Parsed AI response after cleanup")
        return ParseSuccess(candidates=candidates, recovered=True)
    except ValueError:
        pass

    objects = extract_json_objects(strip_code_fences(content))
    candidates = [item for obj in objects for item in _as_candidates(obj)]
    if candidates:
        logger.warning(f"Recovered {len(candidates)} object(s) from malformed AI response")
        return ParseSuccess(candidates=candidates, recovered=True)
    return ParseFailure("no parseable JSON in response")


def validate_candidates(raw: Iterable[Any]) -> List[AIQuoteCandidate]:
    """Keep only candidates with usable English and German text."""
    valid = []
    dropped = 0
    for item in raw:
        if not isinstance(item, dict):
            dropped += 1
            continue
        try:
            valid.append(AIQuoteCandidate.model_validate(item))
        except ValidationError as e:
            dropped += 1
            logger.debug(f"Dropped AI candidate: {e.error_count()} validation error(s)")
    if dropped:
        logger.warning(f"Dropped {dropped} invalid AI candidate(s), kept {len(valid)}")
    return valid
