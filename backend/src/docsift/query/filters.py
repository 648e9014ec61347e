"""Extraction of structured ``key:value`` filter clauses from a query.

``filetype`` values are comma separated and unioned across every
occurrence.  For all other keys only the first occurrence is parsed; later
duplicates are stripped from the text without being validated.
"""

from __future__ import annotations

import logging

from docsift.core.models import DateRange, FilterSet, RangeKind, SizeRange
from docsift.query.ranges import (
    parse_date_expression,
    parse_instant,
    parse_size_expression,
)
from docsift.query.tokenizer import Token, TokenKind, join_tokens, tokenize_query

logger = logging.getLogger(__name__)


def _split_file_types(value: str) -> list[str]:
    types: list[str] = []
    for part in value.split(","):
        file_type = part.strip().lower().lstrip(".")
        if file_type:
            types.append(file_type)
    return types


class FilterExtractor:
    """Pull filter clauses out of a token stream into a :class:`FilterSet`."""

    def extract(self, tokens: list[Token]) -> tuple[FilterSet, list[Token]]:
        """Return the typed filters and the tokens that are not filters.

        Raises
        ------
        QueryError
            If a date or size value cannot be parsed.
        """
        file_types: list[str] = []
        first_values: dict[str, str] = {}
        residual: list[Token] = []

        for token in tokens:
            if token.kind is not TokenKind.FILTER:
                residual.append(token)
                continue

            assert token.key is not None
            if token.key == "filetype":
                for file_type in _split_file_types(token.value):
                    if file_type not in file_types:
                        file_types.append(file_type)
            elif token.key in first_values:
                logger.debug(
                    "Ignoring duplicate %s filter %r (keeping %r)",
                    token.key,
                    token.value,
                    first_values[token.key],
                )
            else:
                first_values[token.key] = token.value

        filters = FilterSet(file_types=file_types)
        if "created" in first_values:
            filters.created = parse_date_expression(first_values["created"])
        if "modified" in first_values:
            filters.modified = parse_date_expression(first_values["modified"])
        if "creator" in first_values:
            filters.creator = first_values["creator"]
        if "editor" in first_values:
            filters.editor = first_values["editor"]
        if "size" in first_values:
            filters.size = parse_size_expression(first_values["size"])

        return filters, residual


def extract_filters(query: str) -> tuple[FilterSet, str]:
    """Convenience wrapper: filters plus the whitespace-normalised residual text."""
    filters, residual = FilterExtractor().extract(tokenize_query(query))
    return filters, join_tokens(residual)


# ---------------------------------------------------------------------------
# Canonical string form
# ---------------------------------------------------------------------------


def _day(instant: str) -> str:
    return parse_instant(instant).date().isoformat()


def _format_date_range(value: DateRange) -> str:
    if value.kind is RangeKind.EXACT and value.date is not None:
        return _day(value.date)
    if value.gte is not None and value.lte is not None and value.gt is None and value.lt is None:
        return f"{_day(value.gte)}..{_day(value.lte)}"

    bounds = [(op, bound) for op, bound in (
        (">", value.gt), (">=", value.gte), ("<", value.lt), ("<=", value.lte)
    ) if bound is not None]
    if len(bounds) != 1:
        raise ValueError(f"Date range cannot be written as a single clause: {value!r}")
    op, bound = bounds[0]
    return f"{op}{_day(bound)}"


def _format_size_range(value: SizeRange) -> str:
    if value.kind is RangeKind.EXACT and value.size is not None:
        return f"{value.size}B"
    if value.gte is not None and value.lte is not None and value.gt is None and value.lt is None:
        return f"{value.gte}B..{value.lte}B"

    bounds = [(op, bound) for op, bound in (
        (">", value.gt), (">=", value.gte), ("<", value.lt), ("<=", value.lte)
    ) if bound is not None]
    if len(bounds) != 1:
        raise ValueError(f"Size range cannot be written as a single clause: {value!r}")
    op, bound = bounds[0]
    return f"{op}{bound}B"


def format_filters(filters: FilterSet) -> str:
    """Render *filters* as clause text that parses back to an equal :class:`FilterSet`.

    Raises
    ------
    ValueError
        If a range combines bounds the clause grammar cannot express.
    """
    clauses: list[str] = []
    if filters.file_types:
        clauses.append("filetype:" + ",".join(filters.file_types))
    if filters.created is not None:
        clauses.append("created:" + _format_date_range(filters.created))
    if filters.modified is not None:
        clauses.append("modified:" + _format_date_range(filters.modified))
    if filters.creator is not None:
        clauses.append(f"creator:{filters.creator}")
    if filters.editor is not None:
        clauses.append(f"editor:{filters.editor}")
    if filters.size is not None:
        clauses.append("size:" + _format_size_range(filters.size))
    return " ".join(clauses)
