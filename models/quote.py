from pydantic import BaseModel
from typing import Dict, List, Optional
from enum import Enum


class QuoteSource(str, Enum):
    STATIC = "static"
    AI_GENERATED = "ai_generated"


class QuoteTranslation(BaseModel):
    text: Optional[str] = None
    reference: Optional[str] = None
    context: Optional[str] = None
    explanation: Optional[str] = None
    situations: List[str] = []
    tags: List[str] = []


class QuoteBase(BaseModel):
    text: str
    author: Optional[str] = None
    reference: Optional[str] = None
    source: QuoteSource = QuoteSource.STATIC
    category: Optional[str] = None
    language: str
    is_premium: bool = False
    context: Optional[str] = None
    explanation: Optional[str] = None
    situations: List[str] = []
    tags: List[str] = []
    translations: Dict[str, QuoteTranslation] = {}


class Quote(QuoteBase):
    id: int
    ai_prompt: Optional[str] = None
    created_at: int

    class Config:
        from_attributes = True


class ScoredQuote(Quote):
    relevance_score: float = 50
    is_ai_generated: bool = False
