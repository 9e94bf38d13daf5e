"""Tests for vector similarity and recency scoring."""

from __future__ import annotations

import math
from datetime import timedelta

import pytest

from brain_search.similarity import (
    age_in_days,
    boosted_score,
    cosine_similarity,
    recency_boost,
)

from .conftest import NOW


def test_self_similarity_is_one() -> None:
    vector = [0.3, -1.2, 4.0, 0.01]
    assert cosine_similarity(vector, vector) == pytest.approx(1.0)


def test_similarity_is_symmetric() -> None:
    a = [1.0, 2.0, 3.0]
    b = [-2.0, 0.5, 1.5]
    assert cosine_similarity(a, b) == cosine_similarity(b, a)


def test_orthogonal_and_opposite_vectors() -> None:
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)


def test_different_lengths_give_exactly_zero() -> None:
    assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0]) == 0.0
    assert cosine_similarity([1.0], [1.0, 0.0, 0.0, 0.0]) == 0.0


def test_zero_magnitude_and_empty_vectors_give_zero() -> None:
    assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == 0.0
    assert cosine_similarity([], []) == 0.0


def test_recency_boost_is_one_for_new_items() -> None:
    assert recency_boost(NOW, 90, now=NOW) == pytest.approx(1.0)


def test_recency_boost_decays_exponentially() -> None:
    created = NOW - timedelta(days=90)
    assert recency_boost(created, 90, now=NOW) == pytest.approx(math.exp(-1))


def test_future_timestamps_count_as_new() -> None:
    assert age_in_days(NOW + timedelta(days=3), now=NOW) == 0.0
    assert recency_boost(NOW + timedelta(days=3), 30, now=NOW) == pytest.approx(1.0)


def test_recency_boost_rejects_non_positive_half_life() -> None:
    with pytest.raises(ValueError):
        recency_boost(NOW, 0, now=NOW)


def test_boosted_score_with_zero_weight_is_unchanged() -> None:
    old = NOW - timedelta(days=400)
    assert boosted_score(0.42, old, weight=0, half_life_days=90, now=NOW) == 0.42


def test_newer_item_gets_strictly_higher_boosted_score() -> None:
    newer = boosted_score(
        0.5, NOW - timedelta(days=1), weight=0.1, half_life_days=30, now=NOW
    )
    older = boosted_score(
        0.5, NOW - timedelta(days=60), weight=0.1, half_life_days=30, now=NOW
    )
    assert newer > older


def test_boosted_score_is_not_renormalised() -> None:
    assert boosted_score(0.95, NOW, weight=0.5, half_life_days=90, now=NOW) == pytest.approx(1.45)
