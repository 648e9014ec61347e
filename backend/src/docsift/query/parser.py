"""Parse facade: raw query string to :class:`ParsedQuery`."""

from __future__ import annotations

import logging

from docsift.core.models import ParsedQuery
from docsift.query.boolean import BooleanParser
from docsift.query.filters import FilterExtractor
from docsift.query.tokenizer import tokenize_query

logger = logging.getLogger(__name__)


class QueryParser:
    """Tokenize once, then hand the stream to the filter extractor and the
    boolean parser in turn.

    Parameters
    ----------
    extractor:
        Filter extractor; a default instance is created when ``None``.
    boolean_parser:
        Boolean expression parser; a default instance is created when ``None``.
    """

    def __init__(
        self,
        extractor: FilterExtractor | None = None,
        boolean_parser: BooleanParser | None = None,
    ) -> None:
        self._extractor = extractor or FilterExtractor()
        self._boolean_parser = boolean_parser or BooleanParser()

    def parse(self, query: str | None) -> ParsedQuery:
        """Parse *query* into filters and a text expression.

        An empty or missing query yields no filters and a match-all
        expression.

        Raises
        ------
        QueryError
            If a filter value is malformed.
        """
        if not query or not query.strip():
            return ParsedQuery()

        filters, residual = self._extractor.extract(tokenize_query(query))
        expression = self._boolean_parser.parse_tokens(residual)
        logger.debug("Parsed query %r: filters=%s", query, filters.model_dump(exclude_none=True))
        return ParsedQuery(filters=filters, expression=expression, original=query)
