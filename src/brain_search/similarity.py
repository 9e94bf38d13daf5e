"""
Vector similarity and recency scoring.

Pure functions with no I/O; they are safe to call from any worker.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Sequence


_SECONDS_PER_DAY = 60 * 60 * 24


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between *a* and *b*.

    Returns 0.0 instead of raising for mismatched lengths and for empty or
    zero-magnitude vectors.
    """
    if len(a) != len(b) or not a:
        return 0.0

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    # Clamp float drift so self-similarity never reports 1.0000000000000002.
    return max(-1.0, min(1.0, similarity))


def age_in_days(created_at: datetime, *, now: datetime | None = None) -> float:
    """Age of a timestamp in days, clamped at zero."""
    current = now or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    delta = (current - created_at).total_seconds() / _SECONDS_PER_DAY
    return max(0.0, delta)


def recency_boost(
    created_at: datetime,
    half_life_days: float,
    *,
    now: datetime | None = None,
) -> float:
    """Exponential decay in (0, 1]: 1.0 for brand-new items."""
    if half_life_days <= 0:
        raise ValueError("half_life_days must be positive.")
    return math.exp(-age_in_days(created_at, now=now) / half_life_days)


def boosted_score(
    similarity: float,
    created_at: datetime,
    *,
    weight: float,
    half_life_days: float,
    now: datetime | None = None,
) -> float:
    """Add a weighted recency term to *similarity*.

    The result is not renormalised; a weight of 0 returns *similarity*.
    """
    if weight <= 0:
        return similarity
    return similarity + weight * recency_boost(created_at, half_life_days, now=now)
