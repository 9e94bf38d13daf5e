from brain_search.search import ScoredResult, merge_ranked, rank_results

from .conftest import make_item


def _result(item_id: str, score: float, matched_by: str = "semantic") -> ScoredResult:
    return ScoredResult(
        item=make_item(item_id), score=score, similarity=score, matched_by=matched_by
    )


def test_rank_results_sorts_descending_and_truncates() -> None:
    ranked = rank_results(
        [_result("a", 0.2), _result("b", 0.9), _result("c", 0.5)], limit=2
    )
    assert [r.item_id for r in ranked] == ["b", "c"]


def test_rank_results_keeps_input_order_for_ties() -> None:
    ranked = rank_results([_result("x", 0.5), _result("y", 0.5)], limit=5)
    assert [r.item_id for r in ranked] == ["x", "y"]


def test_rank_results_treats_non_positive_limit_as_one() -> None:
    assert len(rank_results([_result("a", 0.1), _result("b", 0.2)], limit=0)) == 1


def test_merge_puts_vector_hits_first_then_unseen_lexical_hits() -> None:
    vector = [_result("A", 0.9), _result("B", 0.5)]
    lexical = [
        _result("B", 1.0, "lexical"),
        _result("C", 0.99, "lexical"),
        _result("D", 0.4, "lexical"),
    ]

    merged = merge_ranked(vector, lexical, limit=3)

    assert [r.item_id for r in merged] == ["A", "B", "C"]
    assert merged[1].matched_by == "semantic"
    assert merged[2].matched_by == "lexical"


def test_merge_never_exceeds_limit_or_duplicates() -> None:
    vector = [_result("A", 0.9), _result("B", 0.8), _result("C", 0.7)]
    lexical = [_result("A", 1.0, "lexical"), _result("E", 1.0, "lexical")]

    assert [r.item_id for r in merge_ranked(vector, lexical, limit=2)] == ["A", "B"]
    merged = merge_ranked(vector, lexical, limit=10)
    assert [r.item_id for r in merged] == ["A", "B", "C", "E"]
