"""
Storage interfaces and data models for the item collection.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ItemType(str, Enum):
    """Kind of content an item holds."""

    NOTE = "note"
    WEBSITE = "website"
    SOCIAL = "social"
    VIDEO = "video"
    DOCUMENT = "document"
    OTHER = "other"


class ProcessingStatus(str, Enum):
    """Enrichment lifecycle: pending -> processing -> completed | failed."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WebsiteMetadata(BaseModel):
    """Metadata scraped from a saved website."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    description: str | None = None
    domain: str | None = None
    image: str | None = None
    favicon: str | None = None
    site_name: str | None = None


class ContentItem(BaseModel):
    """An owned unit of content, read-only from the search engine's side."""

    model_config = ConfigDict(frozen=True)

    id: str
    owner_id: str
    title: str = ""
    content: str = ""
    link: str = ""
    type: ItemType = ItemType.NOTE
    tags: list[str] = Field(default_factory=list)
    summary: str = ""
    keywords: list[str] = Field(default_factory=list)
    embedding: list[float] | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    website_metadata: WebsiteMetadata | None = None
    status: ProcessingStatus = ProcessingStatus.PENDING
    error_message: str | None = None

    @field_validator("tags", "keywords")
    @classmethod
    def _dedupe_strings(cls, values: list[str]) -> list[str]:
        seen: list[str] = []
        for value in values:
            text = str(value).strip()
            if text and text not in seen:
                seen.append(text)
        return seen

    @field_validator("embedding")
    @classmethod
    def _empty_embedding_is_absent(cls, value: list[float] | None) -> list[float] | None:
        if value is not None and len(value) == 0:
            return None
        return value

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


class ItemStore(Protocol):
    """Read operations the search engine needs from an item store."""

    def find_items(
        self,
        owner_id: str,
        *,
        item_type: ItemType | str | None = None,
        tags: list[str] | None = None,
        has_embedding: bool | None = None,
        exclude_id: str | None = None,
        limit: int | None = None,
    ) -> list[ContentItem]:
        """Return owner items matching the filters, newest first."""

    def find_lexical_candidates(
        self,
        owner_id: str,
        *,
        phrase: str,
        compact: str,
        tokens: Sequence[str],
        item_type: ItemType | str | None = None,
        tags: list[str] | None = None,
        limit: int,
    ) -> list[ContentItem]:
        """Return at most *limit* newest owner items containing the query text.

        An item qualifies when the phrase occurs in a searchable field, the
        compact form occurs in its link or domain, or every token occurs in
        some field. Embeddings may be omitted from the returned items.
        """

    def get_item(self, item_id: str, owner_id: str) -> ContentItem | None:
        """Fetch one item scoped to its owner."""


class WritableItemStore(ItemStore, Protocol):
    """Write operations used by the ingestion side (never by search)."""

    def upsert_item(self, item: ContentItem) -> None:
        """Insert or replace an item."""

    def list_items_by_status(
        self,
        status: ProcessingStatus,
        *,
        owner_id: str | None = None,
        limit: int = 50,
    ) -> list[ContentItem]:
        """Return items in a processing status, oldest first."""

    def mark_status(
        self,
        item_id: str,
        status: ProcessingStatus,
        *,
        error_message: str | None = None,
    ) -> None:
        """Move an item to a processing status."""

    def store_enrichment(
        self,
        item_id: str,
        *,
        summary: str,
        keywords: list[str],
        embedding: list[float] | None,
    ) -> None:
        """Persist computed summary, keywords and embedding."""
