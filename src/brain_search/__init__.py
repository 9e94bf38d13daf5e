"""
brain-search - hybrid retrieval over a personal content collection.

Ranks an owner's saved items (notes, websites, social posts, videos) by
embedding similarity, merges in lexical phrase/token/fuzzy matches, and
falls back to lexical matching alone whenever no embedding provider answers.

Example usage:
    >>> from brain_search import ContentSearchEngine, DuckDBItemStore, build_default_gateway
    >>> engine = ContentSearchEngine(DuckDBItemStore("items.duckdb"), build_default_gateway())
    >>> results = await engine.search("python tutorial", owner_id="user-1", limit=5)
"""

from .config import SearchTuning, resolve_db_path
from .embeddings import (
    EmbeddingGateway,
    GeminiEmbeddingProvider,
    JinaEmbeddingProvider,
    build_default_gateway,
)
from .errors import (
    BrainSearchError,
    EmbeddingProviderError,
    ProviderConfigurationError,
    StoreUnavailableError,
)
from .search import ContentSearchEngine, LexicalMatcher, ScoredResult, SearchQuery
from .similarity import boosted_score, cosine_similarity, recency_boost
from .storage import (
    ContentItem,
    DuckDBItemStore,
    ItemType,
    ProcessingStatus,
    WebsiteMetadata,
)

__all__ = [
    # Configuration
    "SearchTuning",
    "resolve_db_path",
    # Embeddings
    "EmbeddingGateway",
    "GeminiEmbeddingProvider",
    "JinaEmbeddingProvider",
    "build_default_gateway",
    # Errors
    "BrainSearchError",
    "EmbeddingProviderError",
    "ProviderConfigurationError",
    "StoreUnavailableError",
    # Search
    "ContentSearchEngine",
    "LexicalMatcher",
    "ScoredResult",
    "SearchQuery",
    # Similarity
    "boosted_score",
    "cosine_similarity",
    "recency_boost",
    # Storage
    "ContentItem",
    "DuckDBItemStore",
    "ItemType",
    "ProcessingStatus",
    "WebsiteMetadata",
]
