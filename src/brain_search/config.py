"""
Configuration helpers for the item store and search tuning.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


DEFAULT_DB_PATH = "~/.brain_search/items.duckdb"
ENV_DB_PATH = "BRAIN_SEARCH_DB_PATH"

ENV_MIN_SIMILARITY = "BRAIN_SEARCH_MIN_SIMILARITY"
ENV_VECTOR_RECENCY_BOOST = "BRAIN_SEARCH_VECTOR_RECENCY_BOOST"
ENV_VECTOR_RECENCY_HALFLIFE = "BRAIN_SEARCH_VECTOR_RECENCY_HALFLIFE_DAYS"
ENV_TEXT_RECENCY_BOOST = "BRAIN_SEARCH_TEXT_RECENCY_BOOST"
ENV_TEXT_RECENCY_HALFLIFE = "BRAIN_SEARCH_TEXT_RECENCY_HALFLIFE_DAYS"
ENV_LEXICAL_OVERFETCH = "BRAIN_SEARCH_LEXICAL_OVERFETCH"
ENV_FUZZY_MAX_DISTANCE = "BRAIN_SEARCH_FUZZY_MAX_DISTANCE"
ENV_FUZZY_MIN_TOKEN_LENGTH = "BRAIN_SEARCH_FUZZY_MIN_TOKEN_LENGTH"


def resolve_db_path(override_path: str | None = None) -> str:
    """
    Resolve the DuckDB path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) BRAIN_SEARCH_DB_PATH
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_DB_PATH) or DEFAULT_DB_PATH
    if raw_path == ":memory:":
        return raw_path
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)


@dataclass(frozen=True)
class SearchTuning:
    """Per-query ranking parameters.

    Instances are immutable and passed down by parameter, so concurrent
    queries with different tuning never see each other's values.
    """

    min_similarity: float = 0.2
    vector_recency_weight: float = 0.0
    vector_recency_half_life_days: float = 90.0
    text_recency_weight: float = 0.0
    text_recency_half_life_days: float = 90.0
    similar_recency_weight: float = 0.0
    lexical_overfetch: int = 3
    fuzzy_max_distance: int = 2
    fuzzy_min_token_length: int = 4

    def __post_init__(self) -> None:
        for name in (
            "vector_recency_weight",
            "text_recency_weight",
            "similar_recency_weight",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative.")
        for name in ("vector_recency_half_life_days", "text_recency_half_life_days"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive.")
        if self.lexical_overfetch < 1:
            raise ValueError("lexical_overfetch must be at least 1.")
        if self.fuzzy_max_distance < 0:
            raise ValueError("fuzzy_max_distance must be non-negative.")

    @classmethod
    def from_env(cls) -> "SearchTuning":
        """Read tuning knobs from the environment, falling back to defaults."""
        vector_weight = env_float(ENV_VECTOR_RECENCY_BOOST, 0.0)
        vector_half_life = env_float(ENV_VECTOR_RECENCY_HALFLIFE, 90.0)
        return cls(
            min_similarity=env_float(ENV_MIN_SIMILARITY, 0.2),
            vector_recency_weight=vector_weight,
            vector_recency_half_life_days=vector_half_life,
            text_recency_weight=env_float(ENV_TEXT_RECENCY_BOOST, vector_weight),
            text_recency_half_life_days=env_float(
                ENV_TEXT_RECENCY_HALFLIFE, vector_half_life
            ),
            lexical_overfetch=env_int(ENV_LEXICAL_OVERFETCH, 3),
            fuzzy_max_distance=env_int(ENV_FUZZY_MAX_DISTANCE, 2),
            fuzzy_min_token_length=env_int(ENV_FUZZY_MIN_TOKEN_LENGTH, 4),
        )


def env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
