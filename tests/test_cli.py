"""CLI tests for search, listing and enrichment commands."""

from pathlib import Path

import brain_search.main as main_module
from brain_search.embeddings import EmbeddingGateway
from brain_search.storage import DuckDBItemStore, ItemType, ProcessingStatus
from typer.testing import CliRunner

from .conftest import FakeProvider, make_item


def _seed(db_path: Path) -> None:
    store = DuckDBItemStore(str(db_path))
    try:
        store.upsert_item(make_item("tut", title="Python tutorial", tags=["python"], days_old=2))
        store.upsert_item(make_item("vid", title="Cooking", type=ItemType.VIDEO, tags=["food"]))
    finally:
        store.close()


def _no_providers(monkeypatch) -> None:
    monkeypatch.setattr(
        main_module, "build_default_gateway", lambda **kwargs: EmbeddingGateway([])
    )


def test_search_command_prints_lexical_results(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "items.duckdb"
    _seed(db_path)
    _no_providers(monkeypatch)

    result = CliRunner().invoke(
        main_module.app,
        ["search", "python", "--owner", "owner-1", "--db-path", str(db_path)],
    )

    assert result.exit_code == 0, result.output
    assert "tut" in result.output
    assert "lexical" in result.output
    assert "vid" not in result.output


def test_search_command_reports_no_matches(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "items.duckdb"
    _seed(db_path)
    _no_providers(monkeypatch)

    result = CliRunner().invoke(
        main_module.app,
        ["search", "gardening", "-o", "owner-1", "--db-path", str(db_path)],
    )

    assert result.exit_code == 0
    assert "No matching items." in result.output


def test_type_and_tags_commands(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "items.duckdb"
    _seed(db_path)
    _no_providers(monkeypatch)
    runner = CliRunner()

    by_type = runner.invoke(
        main_module.app, ["type", "video", "-o", "owner-1", "--db-path", str(db_path)]
    )
    by_tag = runner.invoke(
        main_module.app, ["tags", "python", "-o", "owner-1", "--db-path", str(db_path)]
    )

    assert by_type.exit_code == 0, by_type.output
    assert "vid" in by_type.output and "tut" not in by_type.output
    assert by_tag.exit_code == 0, by_tag.output
    assert "tut" in by_tag.output and "vid" not in by_tag.output


def test_enrich_command_completes_pending_items(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "items.duckdb"
    _seed(db_path)
    monkeypatch.setattr(
        main_module,
        "build_default_gateway",
        lambda **kwargs: EmbeddingGateway([FakeProvider("fake", [0.1, 0.2])]),
    )

    result = CliRunner().invoke(
        main_module.app, ["enrich", "--db-path", str(db_path)]
    )

    assert result.exit_code == 0, result.output
    assert "Processed 2" in result.output
    store = DuckDBItemStore(str(db_path), read_only=True)
    try:
        item = store.get_item("tut", "owner-1")
    finally:
        store.close()
    assert item is not None
    assert item.status is ProcessingStatus.COMPLETED
    assert item.embedding == [0.1, 0.2]


def test_search_requires_owner(tmp_path: Path) -> None:
    result = CliRunner().invoke(
        main_module.app, ["search", "python", "--db-path", str(tmp_path / "x.duckdb")]
    )

    assert result.exit_code != 0


def test_invalid_tuning_env_exits_with_message(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "items.duckdb"
    _seed(db_path)
    _no_providers(monkeypatch)
    monkeypatch.setenv("BRAIN_SEARCH_MIN_SIMILARITY", "abc")

    result = CliRunner().invoke(
        main_module.app,
        ["search", "python", "-o", "owner-1", "--db-path", str(db_path)],
    )

    assert result.exit_code == 1
    assert "BRAIN_SEARCH_MIN_SIMILARITY" in result.output
    assert "Traceback" not in result.output


def test_invalid_embedding_env_stops_enrichment(tmp_path: Path, monkeypatch) -> None:
    db_path = tmp_path / "items.duckdb"
    _seed(db_path)
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")
    monkeypatch.setenv("BRAIN_SEARCH_EMBEDDING_DIM", "big")

    result = CliRunner().invoke(
        main_module.app, ["enrich", "--db-path", str(db_path)]
    )

    assert result.exit_code == 1
    assert "BRAIN_SEARCH_EMBEDDING_DIM" in result.output
    store = DuckDBItemStore(str(db_path))
    try:
        assert len(store.list_items_by_status(ProcessingStatus.PENDING)) == 2
    finally:
        store.close()
