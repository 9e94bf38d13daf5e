"""
Enrichment pipeline orchestration.

Moves pending items through processing to completed or failed, filling in
summary, keywords and embedding. This is the write side; the search engine
never calls it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..embeddings import DOCUMENT_TASK, EmbeddingGateway
from ..storage import ContentItem, ProcessingStatus, WritableItemStore
from .keywords import fallback_keywords, fallback_summary


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrichmentResult:
    """Summary output for an enrichment run."""

    processed: int
    completed: int
    failed: int
    embeddings_written: int


class EnrichmentPipeline:
    """Compute summaries, keywords and embeddings for pending items."""

    def __init__(self, storage: WritableItemStore, gateway: EmbeddingGateway) -> None:
        self.storage = storage
        self.gateway = gateway

    async def enrich_pending(
        self,
        *,
        owner_id: str | None = None,
        limit: int = 50,
    ) -> EnrichmentResult:
        pending = await asyncio.to_thread(
            self.storage.list_items_by_status,
            ProcessingStatus.PENDING,
            owner_id=owner_id,
            limit=limit,
        )

        completed = 0
        failed = 0
        embeddings_written = 0
        for item in pending:
            enriched = await self.enrich_item(item)
            if enriched.status is ProcessingStatus.COMPLETED:
                completed += 1
                if enriched.embedding:
                    embeddings_written += 1
            else:
                failed += 1

        return EnrichmentResult(
            processed=len(pending),
            completed=completed,
            failed=failed,
            embeddings_written=embeddings_written,
        )

    async def enrich_item(self, item: ContentItem) -> ContentItem:
        """Enrich one item and return its final state."""
        await asyncio.to_thread(
            self.storage.mark_status, item.id, ProcessingStatus.PROCESSING
        )
        try:
            source_text = item.content or item.title
            summary = item.summary or fallback_summary(source_text)
            keywords = item.keywords or fallback_keywords(source_text)
            embedding = await self.gateway.embed(
                self._embedding_text(item, summary, keywords),
                task_type=DOCUMENT_TASK,
            )
            if not embedding:
                logger.info("Item %s stored without embedding", item.id)

            await asyncio.to_thread(
                self.storage.store_enrichment,
                item.id,
                summary=summary,
                keywords=keywords,
                embedding=embedding or None,
            )
            await asyncio.to_thread(
                self.storage.mark_status, item.id, ProcessingStatus.COMPLETED
            )
        except Exception as exc:
            logger.warning("Enrichment failed for item %s: %s", item.id, exc)
            await asyncio.to_thread(
                self.storage.mark_status,
                item.id,
                ProcessingStatus.FAILED,
                error_message=str(exc),
            )
            return item.model_copy(
                update={"status": ProcessingStatus.FAILED, "error_message": str(exc)}
            )

        return item.model_copy(
            update={
                "summary": summary,
                "keywords": keywords,
                "embedding": embedding or None,
                "status": ProcessingStatus.COMPLETED,
                "error_message": None,
            }
        )

    @staticmethod
    def _embedding_text(item: ContentItem, summary: str, keywords: list[str]) -> str:
        parts = [item.title, item.content, summary, " ".join(keywords)]
        if item.website_metadata is not None and item.website_metadata.description:
            parts.append(item.website_metadata.description)
        return "\n".join(part for part in parts if part)
