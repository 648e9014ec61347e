"""In-memory search engine that executes :class:`CompiledQuery` directly.

Intended for tests, the CLI and small corpora.  Records are analysed once
when added (lower-cased, stop words removed, positions kept).  At query
time filter predicates are applied first; the clause tree then decides
eligibility and score:

- term clauses contribute the boost of every field that contains a term,
- phrase clauses need the terms in order with at most ``slop`` extra
  positions between them (transpositions are not counted as matches),
- AND needs every child, OR needs at least one, and boosters only add to
  the score of records that already match.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
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
from docsift.query.compiler import TEXT_FIELDS
from docsift.query.ranges import parse_instant
from docsift.utils.text import analyze, build_positions, highlight, tokenize

logger = logging.getLogger(__name__)


@dataclass
class _IndexedRecord:
    """A stored record plus per-field term positions."""

    record: ChunkRecord
    positions: dict[str, dict[str, list[int]]] = field(default_factory=dict)


def _index(record: ChunkRecord) -> _IndexedRecord:
    return _IndexedRecord(
        record=record,
        positions={name: build_positions(getattr(record, name)) for name in TEXT_FIELDS},
    )


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def _comparable(field_value: Any, bound: Any) -> Any:
    if isinstance(field_value, datetime) and isinstance(bound, str):
        return parse_instant(bound)
    return bound


def _passes(record: ChunkRecord, predicate: FilterPredicate) -> bool:
    value = getattr(record, predicate.field, None)
    if value is None:
        return False

    if predicate.op is PredicateOp.IN:
        allowed = predicate.value if isinstance(predicate.value, list) else [predicate.value]
        return str(value).lower() in {str(item).lower() for item in allowed}
    if predicate.op is PredicateOp.EQ:
        return value == predicate.value

    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    bound = _comparable(value, predicate.value)
    if predicate.op is PredicateOp.GT:
        return value > bound
    if predicate.op is PredicateOp.GTE:
        return value >= bound
    if predicate.op is PredicateOp.LT:
        return value < bound
    return value <= bound


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def _phrase_matches(
    positions: dict[str, list[int]],
    phrase: list[tuple[str, int]],
    slop: int,
) -> bool:
    if not phrase:
        return False
    first_term, first_offset = phrase[0]

    for start in positions.get(first_term, []):
        previous, previous_offset = start, first_offset
        gap = 0
        for term, offset in phrase[1:]:
            following = [p for p in positions.get(term, []) if p > previous]
            if not following:
                break
            current = following[0]
            gap += (current - previous) - (offset - previous_offset)
            if gap > slop:
                break
            previous, previous_offset = current, offset
        else:
            return True
    return False


def _score_term(clause: TermClause, doc: _IndexedRecord) -> float | None:
    score = 0.0
    matched = False

    if clause.mode is MatchMode.PHRASE:
        phrase = analyze(clause.text)
        for target in clause.fields:
            positions = doc.positions.get(target.field, {})
            if _phrase_matches(positions, phrase, target.slop or 0):
                score += target.boost
                matched = True
    else:
        terms = tokenize(clause.text)
        for target in clause.fields:
            positions = doc.positions.get(target.field, {})
            if any(term in positions for term in terms):
                score += target.boost
                matched = True

    return score if matched else None


def _score(clause: Clause, doc: _IndexedRecord) -> float | None:
    """Return the score of *doc* for *clause*, or ``None`` if it does not match."""
    if isinstance(clause, MatchAllClause):
        return 1.0
    if isinstance(clause, TermClause):
        return _score_term(clause, doc)

    assert isinstance(clause, BoolClause)
    child_scores = [_score(child, doc) for child in clause.clauses]
    if clause.operator is Operator.AND:
        if any(score is None for score in child_scores):
            return None
    elif all(score is None for score in child_scores):
        return None

    total = sum(score for score in child_scores if score is not None)
    for booster in clause.boosters:
        total += _score(booster, doc) or 0.0
    return total


def _highlight_terms(clause: Clause) -> set[str]:
    if isinstance(clause, TermClause):
        return set(tokenize(clause.text))
    if isinstance(clause, BoolClause):
        terms: set[str] = set()
        for child in clause.clauses:
            terms |= _highlight_terms(child)
        return terms
    return set()


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class InMemorySearchEngine:
    """Dictionary-backed engine implementing both engine protocols.

    Parameters
    ----------
    fragment_size:
        Approximate length of each content highlight fragment.
    max_fragments:
        Maximum number of highlight fragments per hit.
    """

    def __init__(self, fragment_size: int = 150, max_fragments: int = 3) -> None:
        self._fragment_size = fragment_size
        self._max_fragments = max_fragments
        self._records: dict[str, _IndexedRecord] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Index writer
    # ------------------------------------------------------------------

    def add_records(self, records: list[ChunkRecord]) -> None:
        indexed = [_index(record) for record in records]
        with self._lock:
            for item in indexed:
                self._records[item.record.record_id] = item
        logger.debug("Added %d records", len(indexed))

    def delete_file(self, file_key: str) -> int:
        with self._lock:
            doomed = [
                record_id
                for record_id, item in self._records.items()
                if item.record.file_key == file_key
            ]
            for record_id in doomed:
                del self._records[record_id]
        return len(doomed)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, query: CompiledQuery, size: int = 20) -> EngineResponse:
        with self._lock:
            snapshot = list(self._records.values())

        matches: list[tuple[float, _IndexedRecord]] = []
        for doc in snapshot:
            if not all(_passes(doc.record, predicate) for predicate in query.filters):
                continue
            score = _score(query.clause, doc)
            if score is not None:
                matches.append((score, doc))

        matches.sort(key=lambda match: match[0], reverse=True)
        terms = _highlight_terms(query.clause)

        hits = [self._to_hit(doc.record, score, terms) for score, doc in matches[:size]]
        logger.debug("Matched %d of %d records", len(matches), len(snapshot))
        return EngineResponse(hits=hits, total=len(matches))

    def _to_hit(self, record: ChunkRecord, score: float, terms: set[str]) -> SearchHit:
        return SearchHit(
            file_key=record.file_key,
            score=score,
            content=record.content,
            highlights=highlight(
                record.content,
                terms,
                fragment_size=self._fragment_size,
                max_fragments=self._max_fragments,
            ),
            chunk_index=record.chunk_index,
            is_chunked=record.is_chunked,
            total_chunks=record.total_chunks,
            filename=record.filename,
            path=record.path,
            extension=record.extension,
            size=record.size,
            modified=record.modified,
        )
