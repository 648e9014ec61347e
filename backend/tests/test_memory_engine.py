"""Tests for the in-memory search engine."""

from datetime import datetime, timezone

import pytest

from docsift.core.models import CompiledQuery
from docsift.query.compiler import QueryCompiler
from docsift.query.parser import QueryParser
from docsift.search.base import IndexWriterProtocol, SearchEngineProtocol
from docsift.search.memory import InMemorySearchEngine
from docsift.utils.text import analyze, highlight


@pytest.fixture
def run(parser: QueryParser, compiler: QueryCompiler, engine: InMemorySearchEngine):
    """Compile a raw query and run it against the engine."""

    def _run(query: str, size: int = 20):
        return engine.search(compiler.compile_parsed(parser.parse(query)), size=size)

    return _run


def _keys(response) -> list[str]:
    return [hit.file_key for hit in response.hits]


# =============================================================================
# Protocol Tests
# =============================================================================


class TestProtocols:
    """Tests for engine protocol conformance."""

    def test_implements_protocols(self, engine: InMemorySearchEngine) -> None:
        """Test that the engine is both a reader and a writer."""
        assert isinstance(engine, SearchEngineProtocol)
        assert isinstance(engine, IndexWriterProtocol)


# =============================================================================
# Index Writer Tests
# =============================================================================


class TestIndexWriter:
    """Tests for adding and removing records."""

    def test_add_and_count(self, engine: InMemorySearchEngine, make_record) -> None:
        """Test that records are stored by id."""
        engine.add_records([make_record("/a.txt", "one"), make_record("/b.txt", "two")])
        assert engine.count() == 2

    def test_same_id_replaces(self, engine: InMemorySearchEngine, make_record) -> None:
        """Test that re-adding a record id overwrites it."""
        engine.add_records([make_record("/a.txt", "old")])
        engine.add_records([make_record("/a.txt", "new")])

        assert engine.count() == 1

    def test_delete_file_removes_all_chunks(
        self, engine: InMemorySearchEngine, make_record
    ) -> None:
        """Test that deletion is by file key, across chunks."""
        engine.add_records(
            [make_record("/big.log", f"part {i}", chunk_index=i) for i in range(3)]
            + [make_record("/other.txt", "keep")]
        )

        assert engine.delete_file("/big.log") == 3
        assert engine.count() == 1
        assert engine.delete_file("/missing") == 0

    def test_clear(self, engine: InMemorySearchEngine, make_record) -> None:
        """Test that clear empties the index."""
        engine.add_records([make_record("/a.txt", "one")])
        engine.clear()
        assert engine.count() == 0


# =============================================================================
# Filter Tests
# =============================================================================


class TestFilters:
    """Tests for filter predicates."""

    def test_file_type(self, engine, make_record, run) -> None:
        """Test extension filtering."""
        engine.add_records([make_record("/a.pdf", "x"), make_record("/b.txt", "x")])
        assert _keys(run("filetype:pdf")) == ["/a.pdf"]

    def test_file_type_case_insensitive(self, engine, make_record, run) -> None:
        """Test that stored extensions match regardless of case."""
        engine.add_records([make_record("/a.pdf", "x", extension=".PDF")])
        assert _keys(run("filetype:pdf")) == ["/a.pdf"]

    @pytest.mark.parametrize(
        ("query", "matches"),
        [
            ("modified:>2024-01-01", False),
            ("modified:>=2024-01-01", True),
            ("modified:2024-01-01", True),
            ("modified:<=2024-01-01", True),
            ("modified:<2024-01-01", False),
            ("modified:2023-12-01..2024-01-01", True),
            ("modified:2024-01-02", False),
        ],
    )
    def test_date_boundaries(self, engine, make_record, run, query: str, matches: bool) -> None:
        """Test day-boundary semantics against a midday timestamp."""
        engine.add_records(
            [make_record("/a.txt", "x", modified=datetime(2024, 1, 1, 12, tzinfo=timezone.utc))]
        )
        assert (_keys(run(query)) == ["/a.txt"]) is matches

    def test_naive_timestamp_is_utc(self, engine, make_record, run) -> None:
        """Test that naive stored timestamps are compared as UTC."""
        engine.add_records([make_record("/a.txt", "x", modified=datetime(2024, 1, 1, 23, 30))])
        assert _keys(run("modified:2024-01-01")) == ["/a.txt"]

    def test_missing_field_excluded(self, engine, make_record, run) -> None:
        """Test that records without the filtered field never match."""
        engine.add_records([make_record("/a.txt", "x")])
        assert _keys(run("created:>=2000-01-01")) == []

    def test_exact_size_tolerance(self, engine, make_record, run) -> None:
        """Test that exact sizes match within one percent."""
        engine.add_records(
            [
                make_record("/in.txt", "x", size=102400 + 1000),
                make_record("/out.txt", "x", size=102400 + 2000),
            ]
        )
        assert _keys(run("size:100KB")) == ["/in.txt"]

    def test_people(self, engine, make_record, run) -> None:
        """Test creator and editor equality."""
        engine.add_records(
            [
                make_record("/a.txt", "x", creator="alice", last_editor="bob"),
                make_record("/b.txt", "x", creator="carol"),
            ]
        )
        assert _keys(run("creator:alice")) == ["/a.txt"]
        assert _keys(run("editor:bob")) == ["/a.txt"]


# =============================================================================
# Scoring Tests
# =============================================================================


class TestScoring:
    """Tests for clause matching and scoring."""

    def test_match_all(self, engine, make_record, run) -> None:
        """Test that an empty query returns every record."""
        engine.add_records([make_record("/a.txt", "x"), make_record("/b.txt", "y")])
        response = run("")

        assert response.total == 2
        assert all(hit.score == 1.0 for hit in response.hits)

    def test_constant_score_ignores_length(self, engine, make_record, run) -> None:
        """Test that repetition and length do not change a term score."""
        engine.add_records(
            [
                make_record("/a.txt", "invoice"),
                make_record("/b.txt", "invoice " * 40 + "and many other words " * 20),
            ]
        )
        scores = {hit.file_key: hit.score for hit in run("invoice").hits}

        assert scores == {"/a.txt": 1.0, "/b.txt": 1.0}

    def test_field_boosts(self, engine, make_record, run) -> None:
        """Test that filename and path matches add their boosts."""
        engine.add_records(
            [
                make_record("/docs/invoice-march.pdf", "the invoice"),
                make_record("/docs/notes.txt", "an invoice"),
            ]
        )
        response = run("invoice")

        assert _keys(response) == ["/docs/invoice-march.pdf", "/docs/notes.txt"]
        assert response.hits[0].score == pytest.approx(1.0 + 2.0 + 1.5)
        assert response.hits[1].score == pytest.approx(1.0)

    def test_or(self, engine, make_record, run) -> None:
        """Test that OR matches either operand."""
        engine.add_records(
            [
                make_record("/a.txt", "invoice"),
                make_record("/b.txt", "receipt"),
                make_record("/c.txt", "memo"),
            ]
        )
        assert sorted(_keys(run("invoice OR receipt"))) == ["/a.txt", "/b.txt"]

    def test_and_requires_both(self, engine, make_record, run) -> None:
        """Test that AND needs every operand somewhere in the record."""
        engine.add_records(
            [
                make_record("/a.txt", "budget for the year and a long report"),
                make_record("/b.txt", "budget only"),
            ]
        )
        assert _keys(run("budget AND report")) == ["/a.txt"]

    def test_and_phrase_is_exact(self, engine, make_record, run) -> None:
        """Test that multi-word operands under AND must be adjacent."""
        engine.add_records(
            [
                make_record("/a.txt", "annual budget summary"),
                make_record("/b.txt", "annual marketing budget summary"),
            ]
        )
        assert _keys(run("annual budget AND summary")) == ["/a.txt"]

    def test_multi_word_needs_all_words(self, engine, make_record, run) -> None:
        """Test that every word of a standalone leaf must appear."""
        engine.add_records(
            [make_record("/a.txt", "quarterly numbers"), make_record("/b.txt", "quarterly report")]
        )
        assert _keys(run("quarterly report")) == ["/b.txt"]

    def test_proximity_boosts_adjacent_words(self, engine, make_record, run) -> None:
        """Test that nearby words outrank distant ones."""
        engine.add_records(
            [
                make_record("/far.txt", "quarterly " + "filler " * 60 + "report"),
                make_record("/near.txt", "quarterly report"),
            ]
        )
        response = run("quarterly report")

        assert _keys(response) == ["/near.txt", "/far.txt"]
        assert response.hits[0].score == pytest.approx(3.0)
        assert response.hits[1].score == pytest.approx(2.0)

    def test_stop_words_ignored(self, engine, make_record, run) -> None:
        """Test that stop words in a phrase do not break adjacency."""
        engine.add_records([make_record("/a.txt", "the state of the union address")])
        assert _keys(run("state union AND address")) == []
        assert _keys(run("state of the union AND address")) == ["/a.txt"]

    def test_filters_and_text(self, engine, make_record, run) -> None:
        """Test that filters restrict text matches."""
        engine.add_records(
            [make_record("/a.pdf", "invoice"), make_record("/b.txt", "invoice")]
        )
        assert _keys(run("invoice filetype:pdf")) == ["/a.pdf"]

    def test_size_limits_hits_not_total(self, engine, make_record, run) -> None:
        """Test that size caps returned hits while total counts all matches."""
        engine.add_records([make_record(f"/{i}.txt", "common") for i in range(5)])
        response = run("common", size=2)

        assert len(response.hits) == 2
        assert response.total == 5

    def test_highlights(self, engine, make_record, run) -> None:
        """Test that matching terms are highlighted in content."""
        engine.add_records([make_record("/a.txt", "Please pay this Invoice soon")])
        (hit,) = run("invoice").hits

        assert hit.highlights == ["Please pay this <em>Invoice</em> soon"]

    def test_empty_query_object(self, engine: InMemorySearchEngine, make_record) -> None:
        """Test searching with a default compiled query."""
        engine.add_records([make_record("/a.txt", "x")])
        assert engine.search(CompiledQuery()).total == 1


# =============================================================================
# Text Analysis Tests
# =============================================================================


class TestTextAnalysis:
    """Tests for tokenization and highlighting helpers."""

    def test_analyze_keeps_positions(self) -> None:
        """Test that stop words are dropped but leave position gaps."""
        assert analyze("The Cat and the Hat") == [("cat", 1), ("hat", 4)]

    def test_highlight_no_terms(self) -> None:
        """Test that nothing is highlighted without terms."""
        assert highlight("some text", set()) == []

    def test_highlight_fragment_limit(self) -> None:
        """Test the fragment cap and non-overlap."""
        text = " ".join((["match"] + ["pad"] * 50) * 5)
        fragments = highlight(text, {"match"}, fragment_size=40, max_fragments=2)

        assert len(fragments) == 2
        assert all("<em>match</em>" in fragment for fragment in fragments)
