"""Compile parsed queries into an engine-agnostic :class:`CompiledQuery`.

Filters become hard predicates that never influence scoring.  Text leaves
compile differently depending on where they sit in the expression tree:

- Under an AND node a leaf is an exact phrase (no word gap), because AND
  asks for the literal words in sequence.
- Standalone or under OR a leaf is a constant-score match across the
  content, filename and path fields, so a long document scores no better
  than a short one for containing the term.  Multi-word leaves require
  every word and add a slop-tolerant phrase booster for ranking only.
"""

from __future__ import annotations

import logging

from docsift.core.models import (
    BoolClause,
    BoolExpression,
    Clause,
    CompiledQuery,
    DateRange,
    FieldMatch,
    FilterPredicate,
    FilterSet,
    MatchAll,
    MatchAllClause,
    MatchMode,
    Operator,
    ParsedQuery,
    PredicateOp,
    RangeKind,
    SizeRange,
    TermClause,
    TextExpression,
    TextLeaf,
)
from docsift.query.ranges import next_day

logger = logging.getLogger(__name__)

# Indexed field names.
CONTENT_FIELD = "content"
FILENAME_FIELD = "filename"
PATH_FIELD = "path"
EXTENSION_FIELD = "extension"
CREATED_FIELD = "created"
MODIFIED_FIELD = "modified"
CREATOR_FIELD = "creator"
EDITOR_FIELD = "last_editor"
SIZE_FIELD = "size"

TEXT_FIELDS: tuple[str, ...] = (CONTENT_FIELD, FILENAME_FIELD, PATH_FIELD)

# Constant-score weight per field for term matches.
TERM_BOOSTS: dict[str, float] = {
    CONTENT_FIELD: 1.0,
    FILENAME_FIELD: 2.0,
    PATH_FIELD: 1.5,
}

# (boost, slop) per field for the proximity booster of multi-word leaves.
PROXIMITY_SETTINGS: dict[str, tuple[float, int]] = {
    CONTENT_FIELD: (1.0, 50),
    FILENAME_FIELD: (2.0, 10),
    PATH_FIELD: (1.0, 10),
}

# Exact-size filters match within +/- this fraction of the requested size.
EXACT_SIZE_TOLERANCE = 0.01

_RANGE_OPS: tuple[tuple[str, PredicateOp], ...] = (
    ("gt", PredicateOp.GT),
    ("gte", PredicateOp.GTE),
    ("lt", PredicateOp.LT),
    ("lte", PredicateOp.LTE),
)


def _bound_predicates(field: str, value: DateRange | SizeRange) -> list[FilterPredicate]:
    predicates: list[FilterPredicate] = []
    for name, op in _RANGE_OPS:
        bound = getattr(value, name)
        if bound is not None:
            predicates.append(FilterPredicate(field=field, op=op, value=bound))
    return predicates


class QueryCompiler:
    """Turn a :class:`FilterSet` and :class:`TextExpression` into a :class:`CompiledQuery`."""

    def compile(self, filters: FilterSet, expression: TextExpression) -> CompiledQuery:
        compiled = CompiledQuery(
            filters=self.compile_filters(filters),
            clause=self.compile_expression(expression),
        )
        logger.debug(
            "Compiled %d filter predicates, root clause %s",
            len(compiled.filters),
            compiled.clause.type,
        )
        return compiled

    def compile_parsed(self, parsed: ParsedQuery) -> CompiledQuery:
        return self.compile(parsed.filters, parsed.expression)

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def compile_filters(self, filters: FilterSet) -> list[FilterPredicate]:
        predicates: list[FilterPredicate] = []

        if filters.file_types:
            predicates.append(
                FilterPredicate(
                    field=EXTENSION_FIELD,
                    op=PredicateOp.IN,
                    value=[f".{file_type}" for file_type in filters.file_types],
                )
            )
        if filters.created is not None:
            predicates.extend(self._date_predicates(CREATED_FIELD, filters.created))
        if filters.modified is not None:
            predicates.extend(self._date_predicates(MODIFIED_FIELD, filters.modified))
        if filters.creator is not None:
            predicates.append(
                FilterPredicate(field=CREATOR_FIELD, op=PredicateOp.EQ, value=filters.creator)
            )
        if filters.editor is not None:
            predicates.append(
                FilterPredicate(field=EDITOR_FIELD, op=PredicateOp.EQ, value=filters.editor)
            )
        if filters.size is not None:
            predicates.extend(self._size_predicates(filters.size))

        return predicates

    def _date_predicates(self, field: str, value: DateRange) -> list[FilterPredicate]:
        if value.kind is RangeKind.EXACT and value.date is not None:
            return [
                FilterPredicate(field=field, op=PredicateOp.GTE, value=value.date),
                FilterPredicate(field=field, op=PredicateOp.LT, value=next_day(value.date)),
            ]
        return _bound_predicates(field, value)

    def _size_predicates(self, value: SizeRange) -> list[FilterPredicate]:
        if value.kind is RangeKind.EXACT and value.size is not None:
            tolerance = value.size * EXACT_SIZE_TOLERANCE
            return [
                FilterPredicate(field=SIZE_FIELD, op=PredicateOp.GTE, value=value.size - tolerance),
                FilterPredicate(field=SIZE_FIELD, op=PredicateOp.LTE, value=value.size + tolerance),
            ]
        return _bound_predicates(SIZE_FIELD, value)

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def compile_expression(self, expression: TextExpression, under_and: bool = False) -> Clause:
        if isinstance(expression, MatchAll):
            return MatchAllClause()
        if isinstance(expression, BoolExpression):
            child_under_and = expression.operator is Operator.AND
            return BoolClause(
                operator=expression.operator,
                clauses=[
                    self.compile_expression(operand, under_and=child_under_and)
                    for operand in expression.operands
                ],
            )
        if under_and:
            return self._exact_phrase(expression)
        return self._constant_score_leaf(expression)

    def _exact_phrase(self, leaf: TextLeaf) -> TermClause:
        return TermClause(
            text=leaf.value,
            mode=MatchMode.PHRASE,
            fields=[FieldMatch(field=field, slop=0) for field in TEXT_FIELDS],
        )

    def _constant_score_term(self, word: str) -> TermClause:
        return TermClause(
            text=word,
            mode=MatchMode.TERM,
            fields=[FieldMatch(field=field, boost=TERM_BOOSTS[field]) for field in TEXT_FIELDS],
            constant_score=True,
        )

    def _constant_score_leaf(self, leaf: TextLeaf) -> Clause:
        words = leaf.words
        if len(words) == 1:
            return self._constant_score_term(words[0])

        proximity = TermClause(
            text=leaf.value,
            mode=MatchMode.PHRASE,
            fields=[
                FieldMatch(field=field, boost=boost, slop=slop)
                for field, (boost, slop) in PROXIMITY_SETTINGS.items()
            ],
        )
        return BoolClause(
            operator=Operator.AND,
            clauses=[self._constant_score_term(word) for word in words],
            boosters=[proximity],
        )
