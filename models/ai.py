from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_TEXT_LENGTH = 10


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _optional_string(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or value.lower() in {"null", "none", "n/a"}:
        return None
    return value


class AITranslation(BaseModel):
    """One language bundle as returned by the generation service."""

    model_config = ConfigDict(populate_by_name=True)

    text: str
    reference: Optional[str] = None
    context: Optional[str] = None
    explanation: Optional[str] = None
    situations: List[str] = []
    tags: List[str] = []

    @field_validator("text", mode="before")
    @classmethod
    def validate_text(cls, v):
        if not isinstance(v, str) or len(v.strip()) < MIN_TEXT_LENGTH:
            raise ValueError(f"text must be a string of at least {MIN_TEXT_LENGTH} characters")
        return v.strip()

    @field_validator("reference", "context", "explanation", mode="before")
    @classmethod
    def validate_optional_text(cls, v):
        return _optional_string(v)

    @field_validator("situations", "tags", mode="before")
    @classmethod
    def validate_lists(cls, v):
        return _string_list(v)


class AIQuoteBundle(AITranslation):
    author: Optional[str] = None
    type: Optional[str] = None
    relevant_queries: List[str] = Field(default=[], alias="relevantQueries")

    @field_validator("author", "type", mode="before")
    @classmethod
    def validate_optional_meta(cls, v):
        return _optional_string(v)

    @field_validator("relevant_queries", mode="before")
    @classmethod
    def validate_queries(cls, v):
        return _string_list(v)


class AIQuoteCandidate(BaseModel):
    """A bilingual quote; both language bundles are required."""

    model_config = ConfigDict(populate_by_name=True)

    en: AIQuoteBundle
    de: AIQuoteBundle
    relevance_score: Optional[float] = Field(default=None, alias="relevanceScore")

    @field_validator("relevance_score", mode="before")
    @classmethod
    def validate_score(cls, v):
        if isinstance(v, bool) or not isinstance(v, (int, float, str)):
            return None
        try:
            score = float(v)
        except ValueError:
            return None
        return max(0.0, min(100.0, score))

    def bundle(self, language: str) -> AIQuoteBundle:
        return self.de if language == "de" else self.en


@dataclass
class ParseSuccess:
    candidates: List[Dict[str, Any]] = field(default_factory=list)
    recovered: bool = False


@dataclass
class ParseFailure:
    reason: str


ParseResult = Union[ParseSuccess, ParseFailure]
