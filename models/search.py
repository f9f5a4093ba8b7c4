from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum

from .quote import ScoredQuote


class Language(str, Enum):
    EN = "en"
    DE = "de"


class SearchSource(str, Enum):
    CACHED = "cached"
    CATEGORY = "category"
    DATABASE = "database"
    AI = "ai"
    RATE_LIMITED = "rate_limited"
    INSUFFICIENT = "insufficient"


class SearchCategory(BaseModel):
    id: int
    name: str
    display_name_de: str
    display_name_en: str
    keywords_de: List[str] = []
    keywords_en: List[str] = []

    class Config:
        from_attributes = True


class SearchContext(BaseModel):
    id: int
    search_query: str
    normalized_query: str
    category_id: Optional[int] = None
    language: str
    search_count: int
    created_at: int
    last_used_at: int

    class Config:
        from_attributes = True


class RateLimitStatus(BaseModel):
    search_count: int
    ai_search_count: int
    max_searches: int
    max_ai_searches: int
    can_search: bool
    can_use_ai: bool
    remaining: int


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)
    language: Language = Language.EN


class SearchResponse(BaseModel):
    quotes: List[ScoredQuote]
    source: SearchSource
    rate_limit: Optional[RateLimitStatus] = None
    was_ai_generated: bool = False
    category: Optional[SearchCategory] = None
    context_id: Optional[int] = None
    error: Optional[str] = None


class SynonymRequest(BaseModel):
    terms: List[str] = Field(..., min_length=1)
    language: Language = Language.EN


class SynonymResponse(BaseModel):
    original_terms: List[str]
    expanded_terms: List[str]
    expansion_count: int
