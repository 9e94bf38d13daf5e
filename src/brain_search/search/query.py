"""
Hybrid retrieval engine: semantic ranking with lexical fallback and merge.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from ..config import SearchTuning
from ..embeddings import EmbeddingGateway
from ..errors import StoreUnavailableError
from ..similarity import boosted_score, cosine_similarity
from ..storage import ContentItem, ItemStore, ItemType
from .lexical import LexicalMatcher
from .ranker import ScoredResult, merge_ranked, rank_results


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchQuery:
    """A single search request; never persisted."""

    text: str
    owner_id: str
    limit: int = 10
    item_type: ItemType | str | None = None
    tags: tuple[str, ...] | None = None


class ContentSearchEngine:
    """Semantic search over an owner's items with lexical fallback and merge.

    All public methods are reads: no item is ever modified.
    """

    def __init__(
        self,
        storage: ItemStore,
        gateway: EmbeddingGateway,
        *,
        tuning: SearchTuning | None = None,
    ) -> None:
        self.storage = storage
        self.gateway = gateway
        self.tuning = tuning or SearchTuning()
        self.lexical = LexicalMatcher(storage, self.tuning)

    async def search(
        self,
        query: str,
        owner_id: str,
        limit: int = 10,
        *,
        item_type: ItemType | str | None = None,
        tags: list[str] | None = None,
        tuning: SearchTuning | None = None,
    ) -> list[ScoredResult]:
        return await self.run(
            SearchQuery(
                text=query,
                owner_id=owner_id,
                limit=limit,
                item_type=item_type,
                tags=tuple(tags) if tags else None,
            ),
            tuning=tuning,
        )

    async def run(
        self,
        query: SearchQuery,
        *,
        tuning: SearchTuning | None = None,
    ) -> list[ScoredResult]:
        active_tuning = tuning or self.tuning
        now = datetime.now(timezone.utc)

        try:
            vector_results = await self._vector_search(query, active_tuning, now)
        except Exception:
            logger.warning(
                "Semantic search failed; falling back to lexical matching",
                exc_info=True,
            )
            vector_results = []

        if not vector_results:
            return await self._lexical_search(query, active_tuning, now)

        lexical_results = await self._lexical_search(query, active_tuning, now)
        return merge_ranked(vector_results, lexical_results, limit=query.limit)

    async def _vector_search(
        self,
        query: SearchQuery,
        tuning: SearchTuning,
        now: datetime,
    ) -> list[ScoredResult]:
        query_embedding = await self.gateway.embed(query.text)
        if not query_embedding:
            logger.info("No query embedding available; using lexical matching")
            return []

        candidates = await asyncio.to_thread(
            self.storage.find_items,
            query.owner_id,
            item_type=query.item_type,
            tags=list(query.tags) if query.tags else None,
            has_embedding=True,
        )
        if not candidates:
            logger.info("Owner %s has no embedded items; using lexical matching", query.owner_id)
            return []

        scored: list[ScoredResult] = []
        for item in candidates:
            if not item.embedding:
                continue
            similarity = cosine_similarity(query_embedding, item.embedding)
            # The floor applies to raw similarity: recency cannot rescue an item.
            if similarity < tuning.min_similarity:
                continue
            scored.append(
                ScoredResult(
                    item=item,
                    score=boosted_score(
                        similarity,
                        item.created_at,
                        weight=tuning.vector_recency_weight,
                        half_life_days=tuning.vector_recency_half_life_days,
                        now=now,
                    ),
                    similarity=similarity,
                    matched_by="semantic",
                )
            )

        if not scored:
            logger.info(
                "No embedded item reached similarity %.2f; using lexical matching",
                tuning.min_similarity,
            )
            return []
        return rank_results(scored, limit=query.limit)

    async def _lexical_search(
        self,
        query: SearchQuery,
        tuning: SearchTuning,
        now: datetime,
    ) -> list[ScoredResult]:
        try:
            return await asyncio.to_thread(
                self.lexical.search,
                query.text,
                query.owner_id,
                limit=query.limit,
                item_type=query.item_type,
                tags=list(query.tags) if query.tags else None,
                tuning=tuning,
                now=now,
            )
        except StoreUnavailableError:
            raise
        except Exception:
            logger.exception("Lexical search failed for owner %s", query.owner_id)
            return []

    async def similar(
        self,
        item_id: str,
        owner_id: str,
        limit: int = 5,
        *,
        tuning: SearchTuning | None = None,
    ) -> list[ScoredResult]:
        """Rank the owner's other embedded items by similarity to *item_id*."""
        active_tuning = tuning or self.tuning
        source = await asyncio.to_thread(self.storage.get_item, item_id, owner_id)
        if source is None or not source.embedding:
            return []

        others = await asyncio.to_thread(
            self.storage.find_items,
            owner_id,
            has_embedding=True,
            exclude_id=item_id,
        )
        now = datetime.now(timezone.utc)
        scored: list[ScoredResult] = []
        for item in others:
            if item.id == item_id or not item.embedding:
                continue
            similarity = cosine_similarity(source.embedding, item.embedding)
            scored.append(
                ScoredResult(
                    item=item,
                    score=boosted_score(
                        similarity,
                        item.created_at,
                        weight=active_tuning.similar_recency_weight,
                        half_life_days=active_tuning.vector_recency_half_life_days,
                        now=now,
                    ),
                    similarity=similarity,
                    matched_by="semantic",
                )
            )
        return rank_results(scored, limit=limit)

    async def search_by_tags(
        self,
        tags: list[str],
        owner_id: str,
        limit: int = 10,
    ) -> list[ContentItem]:
        """Newest items carrying any of *tags*."""
        if not tags:
            return []
        return await asyncio.to_thread(
            self.storage.find_items,
            owner_id,
            tags=list(tags),
            limit=max(limit, 1),
        )

    async def search_by_type(
        self,
        item_type: ItemType | str,
        owner_id: str,
        limit: int = 10,
    ) -> list[ContentItem]:
        """Newest items of one type."""
        return await asyncio.to_thread(
            self.storage.find_items,
            owner_id,
            item_type=item_type,
            limit=max(limit, 1),
        )
