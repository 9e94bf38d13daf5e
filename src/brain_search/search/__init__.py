"""Search helpers for an owner's item collection."""

from .lexical import (
    CandidateView,
    LexicalMatcher,
    MatchVariants,
    ScoringRule,
    SCORING_RULES,
    build_match_variants,
    levenshtein_capped,
    matches_candidate,
    min_edit_distance,
    tokenize,
)
from .query import ContentSearchEngine, SearchQuery
from .ranker import ScoredResult, merge_ranked, rank_results

__all__ = [
    "CandidateView",
    "LexicalMatcher",
    "MatchVariants",
    "ScoringRule",
    "SCORING_RULES",
    "build_match_variants",
    "levenshtein_capped",
    "matches_candidate",
    "min_edit_distance",
    "tokenize",
    "ContentSearchEngine",
    "SearchQuery",
    "ScoredResult",
    "merge_ranked",
    "rank_results",
]
