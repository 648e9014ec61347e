"""Custom exception hierarchy for docsift."""


class DocSiftError(Exception):
    """Base exception for all docsift errors."""


class QueryError(DocSiftError, ValueError):
    """Raised when a filter clause in a query cannot be parsed.

    Callers should reject the whole query rather than run it without
    the offending filter.
    """


class InvalidDateError(QueryError):
    """Raised when a date literal is not a valid calendar date."""


class InvalidSizeFormatError(QueryError):
    """Raised when a size literal does not look like ``<number><unit>``."""


class NegativeSizeError(QueryError):
    """Raised when a size literal is below zero."""


class UnknownSizeUnitError(QueryError):
    """Raised when a size literal uses a unit other than B, KB, MB or GB."""


class SizeOverflowError(QueryError):
    """Raised when a size literal does not convert to a finite byte count."""


class ChunkingError(DocSiftError):
    """Raised when text chunking is given invalid parameters."""


class IndexingError(DocSiftError):
    """Raised when writing records to the index fails."""


class SearchError(DocSiftError):
    """Raised when a search operation fails."""


class EngineUnavailableError(SearchError):
    """Raised when the search engine cannot be reached in time."""
