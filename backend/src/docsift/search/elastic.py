"""Elasticsearch adapter: query DSL, index mapping and response parsing.

Nothing here talks to a cluster.  :func:`to_elasticsearch` builds the
request body for ``POST /<index>/_search``, :data:`INDEX_MAPPING` is the
body for index creation, and :func:`parse_elasticsearch_response` turns a
raw response into an :class:`EngineResponse`.
"""

from __future__ import annotations

import logging
from typing import Any

from docsift.core.models import (
    BoolClause,
    ChunkRecord,
    Clause,
    CompiledQuery,
    EngineResponse,
    FilterPredicate,
    MatchAllClause,
    MatchMode,
    Operator,
    PredicateOp,
    SearchHit,
    TermClause,
)

logger = logging.getLogger(__name__)

_KEYWORD = {"type": "keyword"}
_ANALYZED = {"type": "text", "analyzer": "content_analyzer"}

INDEX_MAPPING: dict[str, Any] = {
    "settings": {
        "analysis": {
            "analyzer": {
                "content_analyzer": {
                    "type": "custom",
                    "tokenizer": "standard",
                    "filter": ["lowercase", "stop"],
                }
            }
        }
    },
    "mappings": {
        "properties": {
            "file_key": _KEYWORD,
            "filename": _ANALYZED,
            "path": {**_ANALYZED, "fields": {"raw": _KEYWORD}},
            "content": _ANALYZED,
            "extension": _KEYWORD,
            "size": {"type": "long"},
            "modified": {"type": "date"},
            "created": {"type": "date"},
            "creator": _KEYWORD,
            "last_editor": _KEYWORD,
            "is_chunked": {"type": "boolean"},
            "chunk_index": {"type": "integer"},
            "total_chunks": {"type": "integer"},
            "start_offset": {"type": "integer"},
            "end_offset": {"type": "integer"},
        }
    },
}


# ---------------------------------------------------------------------------
# Query translation
# ---------------------------------------------------------------------------


def _filters_to_es(predicates: list[FilterPredicate]) -> list[dict[str, Any]]:
    """Translate predicates, merging range operators on the same field."""
    filters: list[dict[str, Any]] = []
    ranges: dict[str, dict[str, Any]] = {}

    for predicate in predicates:
        if predicate.op is PredicateOp.IN:
            filters.append({"terms": {predicate.field: predicate.value}})
        elif predicate.op is PredicateOp.EQ:
            filters.append({"term": {predicate.field: predicate.value}})
        else:
            if predicate.field not in ranges:
                ranges[predicate.field] = {}
                filters.append({"range": {predicate.field: ranges[predicate.field]}})
            ranges[predicate.field][predicate.op.value] = predicate.value

    return filters


def _term_to_es(clause: TermClause) -> dict[str, Any]:
    should: list[dict[str, Any]] = []
    for target in clause.fields:
        if clause.mode is MatchMode.PHRASE:
            should.append(
                {
                    "match_phrase": {
                        target.field: {
                            "query": clause.text,
                            "slop": target.slop or 0,
                            "boost": target.boost,
                        }
                    }
                }
            )
        elif clause.constant_score:
            should.append(
                {
                    "constant_score": {
                        "filter": {"match": {target.field: clause.text}},
                        "boost": target.boost,
                    }
                }
            )
        else:
            should.append({"match": {target.field: {"query": clause.text, "boost": target.boost}}})

    return {"bool": {"should": should, "minimum_should_match": 1}}


def clause_to_es(clause: Clause) -> dict[str, Any]:
    """Translate a scored clause tree into query DSL."""
    if isinstance(clause, MatchAllClause):
        return {"match_all": {}}
    if isinstance(clause, TermClause):
        return _term_to_es(clause)

    assert isinstance(clause, BoolClause)
    children = [clause_to_es(child) for child in clause.clauses]
    boosters = [clause_to_es(booster) for booster in clause.boosters]

    if clause.operator is Operator.AND:
        body: dict[str, Any] = {"must": children}
    else:
        either = {"should": children, "minimum_should_match": 1}
        body = {"must": [{"bool": either}]} if boosters else either
    if boosters:
        body["should"] = boosters
    return {"bool": body}


def to_elasticsearch(
    query: CompiledQuery,
    size: int = 20,
    fragment_size: int = 150,
    number_of_fragments: int = 3,
    max_analyzed_offset: int = 500_000,
) -> dict[str, Any]:
    """Build a ``_search`` request body for *query*.

    Filter predicates go into the non-scoring ``filter`` context.  Content
    highlighting is limited to *max_analyzed_offset* characters, which
    should not be smaller than the chunk size.
    """
    filters = _filters_to_es(query.filters)
    must = [] if isinstance(query.clause, MatchAllClause) else [clause_to_es(query.clause)]

    if not must and not filters:
        es_query: dict[str, Any] = {"match_all": {}}
    else:
        bool_query: dict[str, Any] = {}
        if must:
            bool_query["must"] = must[0]
        if filters:
            bool_query["filter"] = filters
        es_query = {"bool": bool_query}

    return {
        "query": es_query,
        "highlight": {
            "fields": {
                "content": {
                    "fragment_size": fragment_size,
                    "number_of_fragments": number_of_fragments,
                    "max_analyzed_offset": max_analyzed_offset,
                }
            }
        },
        "size": size,
    }


# ---------------------------------------------------------------------------
# Documents and responses
# ---------------------------------------------------------------------------


def record_to_document(record: ChunkRecord) -> dict[str, Any]:
    """Serialise a record as an index document (the id travels separately)."""
    return record.model_dump(mode="json", exclude={"record_id"})


def _total_hits(hits: dict[str, Any]) -> int:
    total = hits.get("total", 0)
    if isinstance(total, dict):
        return int(total.get("value", 0))
    return int(total or 0)


def parse_elasticsearch_response(raw: dict[str, Any]) -> EngineResponse:
    """Convert a raw ``_search`` response into an :class:`EngineResponse`.

    Accepts both the ``{"total": {"value": n}}`` and the older
    ``{"total": n}`` forms of the hit count.
    """
    hits_section = raw.get("hits") or {}
    hits: list[SearchHit] = []

    for hit in hits_section.get("hits", []):
        source = hit.get("_source") or {}
        file_key = source.get("file_key") or source.get("path")
        if not file_key:
            logger.warning("Skipping hit %s without a file key", hit.get("_id"))
            continue

        hits.append(
            SearchHit(
                file_key=file_key,
                score=float(hit.get("_score") or 0.0),
                content=source.get("content") or "",
                highlights=(hit.get("highlight") or {}).get("content", []),
                chunk_index=source.get("chunk_index"),
                is_chunked=bool(source.get("is_chunked", False)),
                total_chunks=source.get("total_chunks") or 1,
                filename=source.get("filename", ""),
                path=source.get("path", ""),
                extension=source.get("extension", ""),
                size=source.get("size"),
                modified=source.get("modified"),
            )
        )

    return EngineResponse(hits=hits, total=_total_hits(hits_section))
