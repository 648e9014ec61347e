"""Tests for the Elasticsearch query adapter."""

from datetime import datetime, timezone

from docsift.core.models import CompiledQuery
from docsift.query.compiler import QueryCompiler
from docsift.query.parser import QueryParser
from docsift.search.elastic import (
    INDEX_MAPPING,
    parse_elasticsearch_response,
    record_to_document,
    to_elasticsearch,
)


def _body(parser: QueryParser, compiler: QueryCompiler, query: str, **kwargs):
    return to_elasticsearch(compiler.compile_parsed(parser.parse(query)), **kwargs)


# =============================================================================
# Query Translation Tests
# =============================================================================


class TestToElasticsearch:
    """Tests for request body generation."""

    def test_match_all(self) -> None:
        """Test that an empty query is a plain match_all."""
        body = to_elasticsearch(CompiledQuery())

        assert body["query"] == {"match_all": {}}
        assert body["size"] == 20

    def test_filters_in_filter_context(self, parser: QueryParser, compiler: QueryCompiler) -> None:
        """Test that predicates land in the non-scoring filter list."""
        body = _body(parser, compiler, "filetype:pdf,docx created:>=2024-01-01 budget AND report")
        query = body["query"]["bool"]

        assert query["filter"] == [
            {"terms": {"extension": [".pdf", ".docx"]}},
            {"range": {"created": {"gte": "2024-01-01T00:00:00.000Z"}}},
        ]
        must = query["must"]["bool"]["must"]
        assert len(must) == 2
        phrase = must[0]["bool"]["should"][0]
        assert phrase == {"match_phrase": {"content": {"query": "budget", "slop": 0, "boost": 1.0}}}

    def test_filters_only(self, parser: QueryParser, compiler: QueryCompiler) -> None:
        """Test that a filter-only query has no must clause."""
        body = _body(parser, compiler, "creator:alice")

        assert body["query"] == {"bool": {"filter": [{"term": {"creator": "alice"}}]}}

    def test_range_bounds_merged(self, parser: QueryParser, compiler: QueryCompiler) -> None:
        """Test that bounds on one field share a single range filter."""
        body = _body(parser, compiler, "size:1MB..2MB")

        assert body["query"]["bool"]["filter"] == [
            {"range": {"size": {"gte": 1048576, "lte": 2097152}}}
        ]

    def test_constant_score_term(self, parser: QueryParser, compiler: QueryCompiler) -> None:
        """Test the structure of a standalone word."""
        body = _body(parser, compiler, "invoice")

        assert body["query"]["bool"]["must"] == {
            "bool": {
                "should": [
                    {"constant_score": {"filter": {"match": {"content": "invoice"}}, "boost": 1.0}},
                    {"constant_score": {"filter": {"match": {"filename": "invoice"}}, "boost": 2.0}},
                    {"constant_score": {"filter": {"match": {"path": "invoice"}}, "boost": 1.5}},
                ],
                "minimum_should_match": 1,
            }
        }

    def test_or(self, parser: QueryParser, compiler: QueryCompiler) -> None:
        """Test that OR requires at least one operand."""
        body = _body(parser, compiler, "invoice OR receipt")
        root = body["query"]["bool"]["must"]["bool"]

        assert root["minimum_should_match"] == 1
        assert len(root["should"]) == 2

    def test_proximity_booster(self, parser: QueryParser, compiler: QueryCompiler) -> None:
        """Test that a multi-word leaf puts its phrase booster in should."""
        body = _body(parser, compiler, "quarterly report")
        root = body["query"]["bool"]["must"]["bool"]

        assert len(root["must"]) == 2
        (booster,) = root["should"]
        assert booster["bool"]["should"][0] == {
            "match_phrase": {"content": {"query": "quarterly report", "slop": 50, "boost": 1.0}}
        }

    def test_highlight_and_size(self) -> None:
        """Test highlight settings and hit count."""
        body = to_elasticsearch(
            CompiledQuery(), size=5, fragment_size=100, number_of_fragments=2, max_analyzed_offset=1000
        )

        assert body["size"] == 5
        assert body["highlight"]["fields"]["content"] == {
            "fragment_size": 100,
            "number_of_fragments": 2,
            "max_analyzed_offset": 1000,
        }


# =============================================================================
# Documents and Responses
# =============================================================================


class TestDocuments:
    """Tests for mapping and document serialisation."""

    def test_mapping_keys(self) -> None:
        """Test that grouping and filter fields are keywords."""
        properties = INDEX_MAPPING["mappings"]["properties"]

        assert properties["file_key"] == {"type": "keyword"}
        assert properties["extension"] == {"type": "keyword"}
        assert properties["size"] == {"type": "long"}
        assert properties["content"]["analyzer"] == "content_analyzer"

    def test_record_to_document(self, make_record) -> None:
        """Test that the id is dropped and dates are serialised."""
        record = make_record("/docs/a.txt", "hello")
        document = record_to_document(record)

        assert "record_id" not in document
        assert document["file_key"] == "/docs/a.txt"
        assert isinstance(document["modified"], str)
        assert document["modified"].startswith("2024-06-01T12:00:00")


class TestParseResponse:
    """Tests for reading raw search responses."""

    def test_hits(self) -> None:
        """Test hit conversion with the object form of total."""
        raw = {
            "hits": {
                "total": {"value": 12, "relation": "eq"},
                "hits": [
                    {
                        "_id": "abc",
                        "_score": 2.5,
                        "_source": {
                            "file_key": "/docs/big.log",
                            "path": "/docs/big.log",
                            "filename": "big.log",
                            "extension": ".log",
                            "content": "chunk text",
                            "is_chunked": True,
                            "chunk_index": 3,
                            "total_chunks": 5,
                            "size": 900,
                            "modified": "2024-06-01T12:00:00Z",
                        },
                        "highlight": {"content": ["<em>chunk</em> text"]},
                    }
                ],
            }
        }
        response = parse_elasticsearch_response(raw)

        assert response.total == 12
        (hit,) = response.hits
        assert hit.file_key == "/docs/big.log"
        assert hit.score == 2.5
        assert hit.chunk_index == 3
        assert hit.is_chunked is True
        assert hit.highlights == ["<em>chunk</em> text"]
        assert hit.modified == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def test_integer_total(self) -> None:
        """Test the older integer form of total."""
        assert parse_elasticsearch_response({"hits": {"total": 3, "hits": []}}).total == 3

    def test_path_fallback_and_missing_key(self) -> None:
        """Test that hits fall back to path and are skipped without any key."""
        raw = {
            "hits": {
                "total": 2,
                "hits": [
                    {"_id": "1", "_score": 1.0, "_source": {"path": "/only/path.txt"}},
                    {"_id": "2", "_score": 1.0, "_source": {"content": "orphan"}},
                ],
            }
        }
        response = parse_elasticsearch_response(raw)

        assert [hit.file_key for hit in response.hits] == ["/only/path.txt"]

    def test_empty(self) -> None:
        """Test an empty response body."""
        response = parse_elasticsearch_response({})

        assert response.hits == []
        assert response.total == 0
