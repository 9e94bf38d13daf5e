import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from brain_search.embeddings import QUERY_TASK
from brain_search.storage import ContentItem, DuckDBItemStore


NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_item(item_id: str, *, owner_id: str = "owner-1", days_old: float = 0, **fields: Any) -> ContentItem:
    created = NOW - timedelta(days=days_old)
    fields.setdefault("created_at", created)
    fields.setdefault("updated_at", created)
    return ContentItem(id=item_id, owner_id=owner_id, **fields)


class FakeProvider:
    """Embedding provider double: fixed vector, error, or slow answer."""

    def __init__(
        self,
        name: str,
        vector: list[float] | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.name = name
        self.vector = vector
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    async def embed(self, text: str, *, task_type: str = QUERY_TASK) -> list[float]:
        self.calls.append((text, task_type))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.vector or [])


class MappingProvider:
    """Returns a vector chosen by the first keyword found in the text."""

    name = "mapping"

    def __init__(self, vectors: dict[str, list[float]], default: list[float] | None = None) -> None:
        self.vectors = vectors
        self.default = default or []

    async def embed(self, text: str, *, task_type: str = QUERY_TASK) -> list[float]:
        lowered = text.lower()
        for keyword, vector in self.vectors.items():
            if keyword in lowered:
                return list(vector)
        return list(self.default)


@pytest.fixture()
def store():
    item_store = DuckDBItemStore(":memory:")
    yield item_store
    item_store.close()
