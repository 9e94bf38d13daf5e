"""
Ranking helpers for ordering and merging retrieval result sets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal

from ..storage import ContentItem


MatchedBy = Literal["semantic", "lexical"]


@dataclass(frozen=True)
class ScoredResult:
    """An item paired with the score it was ranked by."""

    item: ContentItem
    score: float
    similarity: float
    matched_by: MatchedBy

    @property
    def item_id(self) -> str:
        return self.item.id


def rank_results(results: Iterable[ScoredResult], *, limit: int) -> list[ScoredResult]:
    """Sort by descending score and apply limit.

    The sort is stable, so equal scores keep the store's order.
    """
    ordered = sorted(results, key=lambda result: -result.score)
    return ordered[: max(limit, 1)]


def merge_ranked(
    vector_results: list[ScoredResult],
    lexical_results: list[ScoredResult],
    *,
    limit: int,
) -> list[ScoredResult]:
    """Vector hits first in their own order, then unseen lexical hits.

    Lexical scores never lift a lexical-only hit above a vector hit.
    """
    normalized_limit = max(limit, 1)
    merged: list[ScoredResult] = list(vector_results[:normalized_limit])
    seen_ids = {result.item_id for result in merged}

    for result in lexical_results:
        if len(merged) >= normalized_limit:
            break
        if result.item_id in seen_ids:
            continue
        merged.append(result)
        seen_ids.add(result.item_id)

    return merged
