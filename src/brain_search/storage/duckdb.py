"""
DuckDB storage backend for the item collection.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

import duckdb

from ..errors import StoreUnavailableError
from .base import ContentItem, ItemType, ProcessingStatus, WebsiteMetadata


_ITEM_COLUMNS: tuple[str, ...] = (
    "id",
    "owner_id",
    "title",
    "content",
    "link",
    "type",
    "tags",
    "summary",
    "keywords",
    "embedding",
    "created_at",
    "updated_at",
    "website_metadata_json",
    "status",
    "error_message",
)
_SELECT_ITEM = f"SELECT {', '.join(_ITEM_COLUMNS)} FROM items"
# Lexical reads never need the vector column.
_SELECT_LEXICAL = "SELECT {} FROM items".format(
    ", ".join(
        "NULL::DOUBLE[] AS embedding" if column == "embedding" else column
        for column in _ITEM_COLUMNS
    )
)
# Unit separator between fields: a query phrase cannot span two fields.
_LEXICAL_HAYSTACK = """lower(concat_ws(chr(31),
        title, content, link, summary,
        coalesce(metadata_description, ''), coalesce(metadata_domain, ''),
        array_to_string(tags, chr(31)), array_to_string(keywords, chr(31))))"""


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _enum_value(value: ItemType | ProcessingStatus | str) -> str:
    if isinstance(value, (ItemType, ProcessingStatus)):
        return value.value
    return str(value)


def _owner_scope(
    select: str,
    owner_id: str,
    item_type: ItemType | str | None,
    tags: list[str] | None,
) -> tuple[str, list[Any]]:
    sql = f"{select}\nWHERE owner_id = ?"
    params: list[Any] = [owner_id]
    if item_type is not None:
        sql += "\n  AND type = ?"
        params.append(_enum_value(item_type))
    if tags:
        sql += "\n  AND list_has_any(tags, ?::VARCHAR[])"
        params.append([str(tag) for tag in tags])
    return sql, params


class DuckDBItemStore:
    """DuckDB-backed persistence for owned content items."""

    def __init__(
        self,
        db_path: str,
        *,
        read_only: bool = False,
        initialize: bool = True,
    ) -> None:
        if db_path == ":memory:":
            self.db_path = db_path
        else:
            self.db_path = str(Path(db_path).expanduser().resolve())
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.read_only = read_only
        try:
            self._conn = duckdb.connect(self.db_path, read_only=read_only)
        except duckdb.Error as exc:
            raise StoreUnavailableError(
                f"Cannot open item store at {self.db_path}: {exc}"
            ) from exc
        if initialize and not read_only:
            self.initialize()

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self._conn.close()

    def initialize(self) -> None:
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS items (
                id VARCHAR NOT NULL,
                owner_id VARCHAR NOT NULL,
                title VARCHAR NOT NULL,
                content VARCHAR NOT NULL,
                link VARCHAR NOT NULL,
                type VARCHAR NOT NULL,
                tags VARCHAR[] NOT NULL,
                summary VARCHAR NOT NULL,
                keywords VARCHAR[] NOT NULL,
                embedding DOUBLE[],
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                website_metadata_json VARCHAR,
                metadata_description VARCHAR,
                metadata_domain VARCHAR,
                status VARCHAR NOT NULL,
                error_message VARCHAR
            );
            """
        )

    # ------------------------------------------------------------------
    # Reads (used by the search engine)
    # ------------------------------------------------------------------

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
        sql, params = _owner_scope(_SELECT_ITEM, owner_id, item_type, tags)

        if has_embedding is True:
            sql += "\n  AND embedding IS NOT NULL AND len(embedding) > 0"
        elif has_embedding is False:
            sql += "\n  AND (embedding IS NULL OR len(embedding) = 0)"
        if exclude_id is not None:
            sql += "\n  AND id <> ?"
            params.append(exclude_id)

        sql += "\nORDER BY created_at DESC, id ASC"
        if limit is not None:
            sql += "\nLIMIT ?"
            params.append(max(limit, 0))

        return [self._row_to_item(row) for row in self._fetchall(sql, params)]

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
        """Newest owner items whose text contains the phrase, compact form or every token.

        Strings are expected lowercased. Rows come back without embeddings.
        A blank phrase applies no text constraint.
        """
        sql, params = _owner_scope(_SELECT_LEXICAL, owner_id, item_type, tags)

        if phrase:
            alternatives = [f"contains({_LEXICAL_HAYSTACK}, ?)"]
            params.append(phrase)
            if compact:
                alternatives.append("contains(lower(link), ?)")
                alternatives.append(
                    "(coalesce(metadata_domain, '') <> '' "
                    "AND contains(lower(metadata_domain), ?))"
                )
                params.extend([compact, compact])
            if tokens:
                alternatives.append(
                    "("
                    + " AND ".join(f"contains({_LEXICAL_HAYSTACK}, ?)" for _ in tokens)
                    + ")"
                )
                params.extend(tokens)
            sql += "\n  AND (" + "\n       OR ".join(alternatives) + ")"

        sql += "\nORDER BY created_at DESC, id ASC\nLIMIT ?"
        params.append(max(limit, 0))

        return [self._row_to_item(row) for row in self._fetchall(sql, params)]

    def get_item(self, item_id: str, owner_id: str) -> ContentItem | None:
        rows = self._fetchall(
            f"{_SELECT_ITEM}\nWHERE id = ? AND owner_id = ?\nLIMIT 1",
            [item_id, owner_id],
        )
        if not rows:
            return None
        return self._row_to_item(rows[0])

    def count_items(self, *, owner_id: str | None = None) -> int:
        if owner_id is None:
            rows = self._fetchall("SELECT COUNT(*) FROM items", [])
        else:
            rows = self._fetchall(
                "SELECT COUNT(*) FROM items WHERE owner_id = ?", [owner_id]
            )
        return int(rows[0][0]) if rows else 0

    def list_items_by_status(
        self,
        status: ProcessingStatus,
        *,
        owner_id: str | None = None,
        limit: int = 50,
    ) -> list[ContentItem]:
        sql = f"{_SELECT_ITEM}\nWHERE status = ?"
        params: list[Any] = [_enum_value(status)]
        if owner_id is not None:
            sql += "\n  AND owner_id = ?"
            params.append(owner_id)
        sql += "\nORDER BY created_at ASC, id ASC\nLIMIT ?"
        params.append(max(limit, 0))
        return [self._row_to_item(row) for row in self._fetchall(sql, params)]

    # ------------------------------------------------------------------
    # Writes (used by ingestion and enrichment only)
    # ------------------------------------------------------------------

    def upsert_item(self, item: ContentItem) -> None:
        metadata = item.website_metadata
        metadata_json = (
            json.dumps(metadata.model_dump(), sort_keys=True)
            if metadata is not None
            else None
        )
        # Remove the old row first; in-place upserts of list columns are unreliable in DuckDB.
        self._conn.execute("DELETE FROM items WHERE id = ?", [item.id])
        self._conn.execute(
            """
            INSERT INTO items (
                id, owner_id, title, content, link, type, tags, summary, keywords,
                embedding, created_at, updated_at, website_metadata_json,
                metadata_description, metadata_domain, status, error_message
            )
            VALUES (?, ?, ?, ?, ?, ?, ?::VARCHAR[], ?, ?::VARCHAR[], ?::DOUBLE[],
                    ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                item.id,
                item.owner_id,
                item.title,
                item.content,
                item.link,
                _enum_value(item.type),
                list(item.tags),
                item.summary,
                list(item.keywords),
                [float(v) for v in item.embedding] if item.embedding else None,
                _to_naive_utc(item.created_at),
                _to_naive_utc(item.updated_at),
                metadata_json,
                metadata.description if metadata is not None else None,
                metadata.domain if metadata is not None else None,
                _enum_value(item.status),
                item.error_message,
            ],
        )

    def mark_status(
        self,
        item_id: str,
        status: ProcessingStatus,
        *,
        error_message: str | None = None,
    ) -> None:
        self._conn.execute(
            """
            UPDATE items
            SET status = ?, error_message = ?, updated_at = ?
            WHERE id = ?
            """,
            [
                _enum_value(status),
                error_message,
                _to_naive_utc(datetime.now(timezone.utc)),
                item_id,
            ],
        )

    def store_enrichment(
        self,
        item_id: str,
        *,
        summary: str,
        keywords: list[str],
        embedding: list[float] | None,
    ) -> None:
        self._conn.execute(
            """
            UPDATE items
            SET summary = ?, keywords = ?::VARCHAR[], embedding = ?::DOUBLE[],
                updated_at = ?
            WHERE id = ?
            """,
            [
                summary,
                list(keywords),
                [float(v) for v in embedding] if embedding else None,
                _to_naive_utc(datetime.now(timezone.utc)),
                item_id,
            ],
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fetchall(self, sql: str, params: list[Any]) -> list[tuple[Any, ...]]:
        # Each read gets its own cursor so reads issued from worker threads
        # never share a connection handle.
        try:
            cursor = self._conn.cursor()
        except duckdb.Error as exc:
            raise StoreUnavailableError(f"Item store is not readable: {exc}") from exc
        try:
            return cursor.execute(sql, params).fetchall()
        except duckdb.Error as exc:
            raise StoreUnavailableError(f"Item store query failed: {exc}") from exc
        finally:
            cursor.close()

    @staticmethod
    def _row_to_item(row: tuple[Any, ...]) -> ContentItem:
        record = dict(zip(_ITEM_COLUMNS, row))
        metadata_json = record.pop("website_metadata_json")
        website_metadata = (
            WebsiteMetadata.model_validate(json.loads(metadata_json))
            if metadata_json
            else None
        )
        return ContentItem(
            id=str(record["id"]),
            owner_id=str(record["owner_id"]),
            title=str(record["title"]),
            content=str(record["content"]),
            link=str(record["link"]),
            type=ItemType(record["type"]),
            tags=list(record["tags"] or []),
            summary=str(record["summary"]),
            keywords=list(record["keywords"] or []),
            embedding=list(record["embedding"]) if record["embedding"] else None,
            created_at=record["created_at"],
            updated_at=record["updated_at"],
            website_metadata=website_metadata,
            status=ProcessingStatus(record["status"]),
            error_message=record["error_message"],
        )
