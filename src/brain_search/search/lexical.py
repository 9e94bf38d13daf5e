"""
Lexical matching: phrase, token and bounded fuzzy scoring.

Used on its own when semantic search is unavailable, and alongside vector
results to surface items that only match by title, tags or metadata.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable

from ..config import SearchTuning
from ..similarity import boosted_score
from ..storage import ContentItem, ItemStore, ItemType
from .ranker import ScoredResult, rank_results


BASE_SCORE = 0.1
MAX_SCORE = 1.0
FUZZY_WEIGHTS: dict[int, float] = {1: 0.12, 2: 0.06}

# Letters and digits only; underscores split tokens too.
_TOKEN_RE = re.compile(r"[^\W_]+")
_WORD_SPLIT_RE = re.compile(r"\W+")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class MatchVariants:
    """Normalized forms of a query used for filtering and scoring."""

    phrase: str
    compact: str
    tokens: tuple[str, ...]

    @property
    def is_blank(self) -> bool:
        return not self.phrase

    @property
    def token_set(self) -> frozenset[str]:
        return frozenset(self.tokens)


def tokenize(text: str) -> list[str]:
    """Lowercased letter/digit runs longer than one character, de-duplicated."""
    tokens: list[str] = []
    for token in _TOKEN_RE.findall(text.lower()):
        if len(token) > 1 and token not in tokens:
            tokens.append(token)
    return tokens


def build_match_variants(query: str) -> MatchVariants:
    phrase = query.strip().lower()
    return MatchVariants(
        phrase=phrase,
        compact=_WHITESPACE_RE.sub("", phrase),
        tokens=tuple(tokenize(phrase)),
    )


@dataclass(frozen=True)
class CandidateView:
    """Lowercased searchable fields of one item."""

    title: str
    content: str
    link: str
    summary: str
    tags: tuple[str, ...]
    keywords: tuple[str, ...]
    description: str
    domain: str

    @classmethod
    def from_item(cls, item: ContentItem) -> "CandidateView":
        metadata = item.website_metadata
        return cls(
            title=item.title.lower(),
            content=item.content.lower(),
            link=item.link.lower(),
            summary=item.summary.lower(),
            tags=tuple(tag.lower() for tag in item.tags),
            keywords=tuple(keyword.lower() for keyword in item.keywords),
            description=((metadata.description if metadata else None) or "").lower(),
            domain=((metadata.domain if metadata else None) or "").lower(),
        )

    @property
    def searchable_fields(self) -> tuple[str, ...]:
        return (
            self.title,
            self.content,
            self.link,
            self.summary,
            self.description,
            self.domain,
            *self.tags,
            *self.keywords,
        )

    @property
    def corpus_words(self) -> list[str]:
        words = [
            *_WORD_SPLIT_RE.split(self.title),
            *_WORD_SPLIT_RE.split(self.summary),
            *self.keywords,
            *self.tags,
        ]
        return [word for word in words if word]


def matches_candidate(view: CandidateView, variants: MatchVariants) -> bool:
    """Phrase, compact or all-tokens match against the searchable fields.

    A blank query matches every item.
    """
    if variants.is_blank:
        return True

    fields = view.searchable_fields
    if any(variants.phrase in field for field in fields):
        return True
    if variants.compact and (
        variants.compact in view.link
        or (view.domain and variants.compact in view.domain)
    ):
        return True
    if variants.tokens:
        return all(
            any(token in field for field in fields) for token in variants.tokens
        )
    return False


@dataclass(frozen=True)
class ScoringRule:
    """One additive lexical signal."""

    name: str
    weight: float
    predicate: Callable[[CandidateView, MatchVariants], bool]


SCORING_RULES: tuple[ScoringRule, ...] = (
    ScoringRule(
        "phrase_in_title",
        0.6,
        lambda view, q: bool(q.phrase) and q.phrase in view.title,
    ),
    ScoringRule(
        "phrase_in_summary",
        0.3,
        lambda view, q: bool(q.phrase) and q.phrase in view.summary,
    ),
    ScoringRule(
        "token_in_title",
        0.2,
        lambda view, q: any(len(t) > 2 and t in view.title for t in q.tokens),
    ),
    ScoringRule(
        "tag_equals_token",
        0.2,
        lambda view, q: any(tag in q.token_set for tag in view.tags),
    ),
    ScoringRule(
        "keyword_equals_token",
        0.15,
        lambda view, q: any(keyword in q.token_set for keyword in view.keywords),
    ),
    ScoringRule(
        "domain_equals_token",
        0.1,
        lambda view, q: bool(view.domain) and view.domain in q.token_set,
    ),
)


def levenshtein_capped(a: str, b: str, cap: int) -> int:
    """Edit distance between *a* and *b*, or ``cap + 1`` once it exceeds *cap*.

    Insertions, deletions and substitutions cost 1; swapping two adjacent
    characters also costs 1, so "pyhton" is one edit away from "python".
    Bails out before any work when the lengths alone rule a match out, and
    after any DP row whose minimum is already above the cap.
    """
    len_a, len_b = len(a), len(b)
    if abs(len_a - len_b) > cap:
        return cap + 1

    before_previous: list[int] = []
    previous = list(range(len_b + 1))
    for i in range(1, len_a + 1):
        current = [i] + [0] * len_b
        row_min = i
        for j in range(1, len_b + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            value = min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            )
            if i > 1 and j > 1 and a[i - 1] == b[j - 2] and a[i - 2] == b[j - 1]:
                value = min(value, before_previous[j - 2] + 1)
            current[j] = value
            if value < row_min:
                row_min = value
        if row_min > cap:
            return cap + 1
        before_previous, previous = previous, current
    return min(previous[len_b], cap + 1)


def min_edit_distance(token: str, words: Iterable[str], cap: int) -> int:
    best = cap + 1
    for word in words:
        distance = levenshtein_capped(token, word, cap)
        if distance < best:
            best = distance
        if best == 0:
            break
    return best


def fuzzy_score(
    view: CandidateView,
    variants: MatchVariants,
    *,
    max_distance: int = 2,
    min_token_length: int = 4,
) -> float:
    """Small boosts for near-miss spellings of longer query tokens."""
    words = view.corpus_words
    if not words:
        return 0.0
    score = 0.0
    for token in variants.tokens:
        if len(token) < min_token_length:
            continue
        best = min_edit_distance(token, words, max_distance)
        score += FUZZY_WEIGHTS.get(best, 0.0)
    return score


def relevance_score(
    view: CandidateView,
    variants: MatchVariants,
    *,
    tuning: SearchTuning,
) -> float:
    """Base score plus rule and fuzzy boosts, before recency and capping."""
    score = BASE_SCORE
    for rule in SCORING_RULES:
        if rule.predicate(view, variants):
            score += rule.weight
    score += fuzzy_score(
        view,
        variants,
        max_distance=tuning.fuzzy_max_distance,
        min_token_length=tuning.fuzzy_min_token_length,
    )
    return score


def score_candidate(
    item: ContentItem,
    variants: MatchVariants,
    *,
    tuning: SearchTuning,
    now: datetime | None = None,
    view: CandidateView | None = None,
) -> ScoredResult:
    candidate = view or CandidateView.from_item(item)
    relevance = relevance_score(candidate, variants, tuning=tuning)
    score = boosted_score(
        relevance,
        item.created_at,
        weight=tuning.text_recency_weight,
        half_life_days=tuning.text_recency_half_life_days,
        now=now,
    )
    return ScoredResult(
        item=item,
        score=min(score, MAX_SCORE),
        similarity=min(relevance, MAX_SCORE),
        matched_by="lexical",
    )


class LexicalMatcher:
    """Heuristic phrase/token/fuzzy search over an owner's items."""

    def __init__(self, storage: ItemStore, tuning: SearchTuning | None = None) -> None:
        self.storage = storage
        self.tuning = tuning or SearchTuning()

    def search(
        self,
        query: str,
        owner_id: str,
        *,
        limit: int = 10,
        item_type: ItemType | str | None = None,
        tags: list[str] | None = None,
        tuning: SearchTuning | None = None,
        now: datetime | None = None,
    ) -> list[ScoredResult]:
        active_tuning = tuning or self.tuning
        normalized_limit = max(limit, 1)
        fetch_limit = normalized_limit * active_tuning.lexical_overfetch
        variants = build_match_variants(query)
        current = now or datetime.now(timezone.utc)

        candidates = self.storage.find_lexical_candidates(
            owner_id,
            phrase=variants.phrase,
            compact=variants.compact,
            tokens=variants.tokens,
            item_type=item_type,
            tags=tags,
            limit=fetch_limit,
        )

        scored: list[ScoredResult] = []
        for item in candidates:
            view = CandidateView.from_item(item)
            # The store folds case in SQL; recheck with Python's rules.
            if not matches_candidate(view, variants):
                continue
            scored.append(
                score_candidate(
                    item, variants, tuning=active_tuning, now=current, view=view
                )
            )

        return rank_results(scored, limit=normalized_limit)
