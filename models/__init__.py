from .quote import Quote, QuoteTranslation, QuoteSource, ScoredQuote
from .search import (
    Language,
    RateLimitStatus,
    SearchCategory,
    SearchContext,
    SearchRequest,
    SearchResponse,
    SearchSource,
    SynonymRequest,
    SynonymResponse,
)
from .ai import AIQuoteBundle, AIQuoteCandidate, AITranslation, ParseFailure, ParseResult, ParseSuccess

__all__ = [
    'Quote', 'QuoteTranslation', 'QuoteSource', 'ScoredQuote',
    'Language', 'RateLimitStatus', 'SearchCategory', 'SearchContext', 'SearchRequest',
    'SearchResponse', 'SearchSource', 'SynonymRequest', 'SynonymResponse',
    'AIQuoteBundle', 'AIQuoteCandidate', 'AITranslation', 'ParseFailure', 'ParseResult', 'ParseSuccess',
]
