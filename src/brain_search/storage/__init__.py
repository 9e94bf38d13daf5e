"""Storage backends for the item collection."""

from .base import (
    ContentItem,
    ItemStore,
    ItemType,
    ProcessingStatus,
    WebsiteMetadata,
    WritableItemStore,
)
from .duckdb import DuckDBItemStore

__all__ = [
    "ContentItem",
    "ItemStore",
    "ItemType",
    "ProcessingStatus",
    "WebsiteMetadata",
    "WritableItemStore",
    "DuckDBItemStore",
]
